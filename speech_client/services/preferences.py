"""
Persisted user preferences.
"""
from typing import Tuple

import structlog

from speech_client.infrastructure.storage import KeyValueStore

logger = structlog.get_logger(__name__)

SUPPORTED_LANGUAGES: Tuple[str, ...] = ("uk", "ru")
LANGUAGE_KEY = "language"


class LanguageStore:
    """
    Current interface language.

    The value is read synchronously by the language header interceptor, so
    it is cached in memory and loaded once at startup.
    """

    def __init__(self, storage: KeyValueStore, default_language: str = "uk"):
        if default_language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language: {default_language}")
        self.storage = storage
        self.default_language = default_language
        self._language = default_language

    @property
    def language(self) -> str:
        return self._language

    async def load(self) -> str:
        """Load the persisted language, falling back to the default."""
        stored = await self.storage.get_string(LANGUAGE_KEY)
        if stored in SUPPORTED_LANGUAGES:
            self._language = stored
        elif stored is not None:
            logger.warning("stored_language_unsupported", language=stored)
        return self._language

    async def set_language(self, language: str) -> None:
        """
        Change and persist the language.

        Raises:
            ValueError: If the language is not supported
        """
        if language not in SUPPORTED_LANGUAGES:
            raise ValueError(f"Unsupported language: {language}")
        await self.storage.set(LANGUAGE_KEY, language)
        self._language = language
        logger.info("language_changed", language=language)
