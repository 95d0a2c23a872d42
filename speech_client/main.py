"""
Client runtime wiring.

Builds the single instance of every session component and manages their
lifetime.
"""
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

import sentry_sdk

from speech_client.core.config import Settings, get_settings
from speech_client.core.logging import get_logger, setup_logging
from speech_client.core.platform import CredentialPolicy, Platform, credential_policy_for
from speech_client.infrastructure.http import ApiClient, build_auth_pipeline
from speech_client.infrastructure.storage import (
    AUTH_STORAGE_ID,
    LANGUAGE_STORAGE_ID,
    KeyValueStore,
    load_or_create_encryption_key,
)
from speech_client.services.auth.auth_service import AuthService
from speech_client.services.auth.exchange import SessionExchangeClient
from speech_client.services.auth.oauth import (
    AuthSessionPrompt,
    GoogleSignInSdk,
    OAuthStrategySelector,
    build_strategies,
)
from speech_client.services.preferences import LanguageStore
from speech_client.services.session.bootstrap import SessionBootstrapController
from speech_client.services.session.invalidation import SessionInvalidator
from speech_client.services.session.state import DeferredTaskQueue, SessionStore
from speech_client.services.session.token_store import SecureTokenStore
from speech_client.services.user import UserService

logger = get_logger(__name__)


@dataclass
class ClientRuntime:
    """Every long-lived component of the client."""
    settings: Settings
    platform: Platform
    policy: CredentialPolicy
    session_store: SessionStore
    token_store: SecureTokenStore
    language_store: LanguageStore
    invalidator: SessionInvalidator
    api_client: ApiClient
    user_service: UserService
    exchange_client: SessionExchangeClient
    selector: OAuthStrategySelector
    auth_service: AuthService
    bootstrap: SessionBootstrapController


def create_runtime(
    settings: Optional[Settings] = None,
    google_sdk: Optional[GoogleSignInSdk] = None,
    auth_prompt: Optional[AuthSessionPrompt] = None,
) -> ClientRuntime:
    """
    Build the client components for the configured platform.

    Args:
        settings: Client settings; the cached settings when omitted
        google_sdk: Native Google Sign-In SDK (iOS, Android)
        auth_prompt: Browser auth prompt (web)

    Returns:
        Wired runtime; the HTTP session is opened by ``lifespan``
    """
    settings = settings or get_settings()
    platform = Platform(settings.PLATFORM)
    policy = credential_policy_for(platform)

    auth_key = settings.AUTH_ENCRYPTION_KEY
    if policy.persists_tokens and not auth_key:
        auth_key = load_or_create_encryption_key(settings.STORAGE_DIR, AUTH_STORAGE_ID)

    token_store = SecureTokenStore(
        policy,
        KeyValueStore(AUTH_STORAGE_ID, settings.STORAGE_DIR, encryption_key=auth_key),
    )
    language_store = LanguageStore(
        KeyValueStore(LANGUAGE_STORAGE_ID, settings.STORAGE_DIR),
        default_language=settings.DEFAULT_LANGUAGE,
    )

    session_store = SessionStore()
    invalidator = SessionInvalidator(token_store, session_store, DeferredTaskQueue())

    api_client = ApiClient(
        settings.BASE_URL,
        pipeline=build_auth_pipeline(
            policy,
            token_store,
            invalidator,
            lambda: language_store.language,
        ),
        timeout_seconds=settings.API_TIMEOUT_SECONDS,
        cookie_jar_factory=policy.create_cookie_jar,
    )
    user_service = UserService(api_client, session_store)

    strategies = build_strategies(settings, platform, google_sdk=google_sdk, auth_prompt=auth_prompt)
    exchange_client = SessionExchangeClient(
        api_client,
        policy,
        token_store,
        session_store,
        providers=strategies,
    )
    selector = OAuthStrategySelector(platform, strategies, exchange_client)

    return ClientRuntime(
        settings=settings,
        platform=platform,
        policy=policy,
        session_store=session_store,
        token_store=token_store,
        language_store=language_store,
        invalidator=invalidator,
        api_client=api_client,
        user_service=user_service,
        exchange_client=exchange_client,
        selector=selector,
        auth_service=AuthService(selector, exchange_client, token_store, session_store),
        bootstrap=SessionBootstrapController(
            policy,
            token_store,
            session_store,
            user_service,
            max_retries=settings.BOOTSTRAP_MAX_RETRIES,
            retry_base_delay=settings.BOOTSTRAP_RETRY_BASE_DELAY_SECONDS,
            retry_max_delay=settings.BOOTSTRAP_RETRY_MAX_DELAY_SECONDS,
        ),
    )


def init_sentry(settings: Settings) -> bool:
    """Initialize Sentry if configured."""
    if not settings.SENTRY_DSN:
        return False
    sentry_sdk.init(
        dsn=settings.SENTRY_DSN,
        environment=settings.ENVIRONMENT,
        release=settings.APP_VERSION,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
    )
    return True


@asynccontextmanager
async def lifespan(
    settings: Optional[Settings] = None,
    google_sdk: Optional[GoogleSignInSdk] = None,
    auth_prompt: Optional[AuthSessionPrompt] = None,
) -> AsyncIterator[ClientRuntime]:
    """
    Client lifespan manager.

    Configures logging and error reporting, opens the HTTP session,
    restores the session once and closes everything on exit.
    """
    settings = settings or get_settings()
    setup_logging(settings)
    init_sentry(settings)

    runtime = create_runtime(settings, google_sdk=google_sdk, auth_prompt=auth_prompt)

    # Startup
    logger.info(
        "client_starting",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        platform=runtime.platform.value,
    )
    await runtime.language_store.load()
    await runtime.api_client.start()
    try:
        outcome = await runtime.bootstrap.run()
        logger.info("client_started", session=outcome.status.value)

        yield runtime
    finally:
        # Shutdown
        logger.info("client_stopping")
        await runtime.api_client.close()
