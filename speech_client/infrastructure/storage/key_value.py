"""
Namespaced key/value storage on the local filesystem.

Each namespace is one JSON document on disk. A namespace created with an
encryption key is encrypted at rest with Fernet; its content is never
written in clear text.
"""
import asyncio
import json
import os
from pathlib import Path
from typing import Dict, Optional, Union

import aiofiles
import aiofiles.os
import structlog
from cryptography.fernet import Fernet, InvalidToken

from speech_client.core.exceptions import ConfigurationError, TokenStoreError

logger = structlog.get_logger(__name__)

AUTH_STORAGE_ID = "auth-storage"
LANGUAGE_STORAGE_ID = "language-storage"


def load_or_create_encryption_key(directory: Path, namespace: str) -> bytes:
    """
    Get the encryption key for a namespace, creating it on first use.

    Args:
        directory: Storage directory
        namespace: Storage namespace

    Returns:
        Fernet key bytes
    """
    directory.mkdir(parents=True, exist_ok=True)
    key_file = directory / f".{namespace}.key"

    if key_file.exists():
        with open(key_file, "rb") as f:
            return f.read().strip()

    key = Fernet.generate_key()
    with open(key_file, "wb") as f:
        f.write(key)
    key_file.chmod(0o600)
    logger.info("storage_key_created", namespace=namespace)
    return key


class KeyValueStore:
    """Async string key/value store bound to one namespace."""

    def __init__(
        self,
        namespace: str,
        directory: Union[str, Path],
        encryption_key: Optional[Union[str, bytes]] = None,
    ):
        """
        Args:
            namespace: Storage namespace (file name on disk)
            directory: Storage directory
            encryption_key: Fernet key; plain JSON when omitted
        """
        self.namespace = namespace
        self.directory = Path(directory)
        self.path = self.directory / f"{namespace}.json"

        self._cipher: Optional[Fernet] = None
        if encryption_key:
            if isinstance(encryption_key, str):
                encryption_key = encryption_key.encode("utf-8")
            try:
                self._cipher = Fernet(encryption_key)
            except (ValueError, TypeError) as e:
                raise ConfigurationError(
                    f"Invalid encryption key for storage '{namespace}': {e}",
                    setting="AUTH_ENCRYPTION_KEY",
                )

        self._data: Optional[Dict[str, str]] = None
        self._lock = asyncio.Lock()

    @property
    def is_encrypted(self) -> bool:
        return self._cipher is not None

    async def get_string(self, key: str) -> Optional[str]:
        """Get a value, or None if the key is absent."""
        async with self._lock:
            data = await self._load()
            return data.get(key)

    async def set(self, key: str, value: str) -> None:
        """Set a single value."""
        await self.update({key: value})

    async def update(self, values: Dict[str, str], remove: tuple[str, ...] = ()) -> None:
        """
        Set several values and remove keys in one write.

        Args:
            values: Keys to set
            remove: Keys to delete
        """
        async with self._lock:
            data = dict(await self._load())
            data.update(values)
            for key in remove:
                data.pop(key, None)
            await self._write(data)

    async def remove(self, *keys: str) -> None:
        """Remove keys; absent keys are ignored."""
        async with self._lock:
            data = await self._load()
            if not any(key in data for key in keys):
                return
            data = {k: v for k, v in data.items() if k not in keys}
            await self._write(data)

    async def _load(self) -> Dict[str, str]:
        if self._data is not None:
            return self._data

        if not await aiofiles.os.path.exists(self.path):
            self._data = {}
            return self._data

        try:
            async with aiofiles.open(self.path, "rb") as f:
                raw = await f.read()
            if self._cipher:
                raw = self._cipher.decrypt(raw)
            loaded = json.loads(raw.decode("utf-8"))
            self._data = {str(k): str(v) for k, v in loaded.items()}
        except InvalidToken:
            logger.warning("storage_decrypt_failed", namespace=self.namespace)
            self._data = {}
        except (json.JSONDecodeError, UnicodeDecodeError, AttributeError) as e:
            logger.warning("storage_corrupted", namespace=self.namespace, error=str(e))
            self._data = {}
        except OSError as e:
            raise TokenStoreError(f"Failed to read storage '{self.namespace}': {e}", operation="read")

        return self._data

    async def _write(self, data: Dict[str, str]) -> None:
        payload = json.dumps(data).encode("utf-8")
        if self._cipher:
            payload = self._cipher.encrypt(payload)

        tmp_path = self.path.with_suffix(".tmp")
        try:
            await aiofiles.os.makedirs(self.directory, exist_ok=True)
            async with aiofiles.open(tmp_path, "wb") as f:
                await f.write(payload)
            os.chmod(tmp_path, 0o600)
            await aiofiles.os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error("storage_write_failed", namespace=self.namespace, error=str(e))
            raise TokenStoreError(f"Failed to write storage '{self.namespace}': {e}", operation="write")

        self._data = data
