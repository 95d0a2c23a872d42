"""
Shared fixtures.
"""
from pathlib import Path

import pytest
import pytest_asyncio
from cryptography.fernet import Fernet

from speech_client.core.config import Settings
from speech_client.core.platform import CookieCredentials, HeaderCredentials
from speech_client.infrastructure.storage import AUTH_STORAGE_ID, KeyValueStore
from speech_client.main import create_runtime
from speech_client.services.session.token_store import SecureTokenStore
from tests.mocks.backend import MockBackend
from tests.mocks.google_sdk import MockAuthSessionPrompt, MockGoogleSignInSdk


@pytest.fixture
def storage_dir(tmp_path) -> Path:
    return tmp_path / "storage"


@pytest.fixture
def encryption_key() -> str:
    return Fernet.generate_key().decode()


@pytest.fixture
def header_token_store(storage_dir, encryption_key) -> SecureTokenStore:
    return SecureTokenStore(
        HeaderCredentials(),
        KeyValueStore(AUTH_STORAGE_ID, storage_dir, encryption_key=encryption_key),
    )


@pytest.fixture
def cookie_token_store(storage_dir) -> SecureTokenStore:
    return SecureTokenStore(CookieCredentials(), KeyValueStore(AUTH_STORAGE_ID, storage_dir))


@pytest.fixture
def google_sdk() -> MockGoogleSignInSdk:
    return MockGoogleSignInSdk()


@pytest.fixture
def auth_prompt() -> MockAuthSessionPrompt:
    return MockAuthSessionPrompt()


@pytest.fixture
def make_settings(storage_dir, encryption_key):
    """Factory for isolated settings."""
    def _make(platform: str = "ios", base_url: str = "http://localhost:3000", **overrides) -> Settings:
        values = {
            "PLATFORM": platform,
            "BASE_URL": base_url,
            "ENVIRONMENT": "development",
            "STORAGE_DIR": storage_dir,
            "AUTH_ENCRYPTION_KEY": encryption_key,
            "GOOGLE_CLIENT_ID_WEB": "web-client-id.apps.googleusercontent.com",
            "GOOGLE_CLIENT_ID_IOS": "ios-client-id.apps.googleusercontent.com",
            "OAUTH_REDIRECT_URI": "http://localhost:8081",
            "API_TIMEOUT_SECONDS": 5,
            "BOOTSTRAP_RETRY_BASE_DELAY_SECONDS": 0,
            "BOOTSTRAP_RETRY_MAX_DELAY_SECONDS": 0,
            "SENTRY_DSN": None,
        }
        values.update(overrides)
        return Settings(**values)
    return _make


@pytest_asyncio.fixture
async def backend():
    """Running mock backend."""
    backend = MockBackend()
    await backend.start()
    yield backend
    await backend.close()


@pytest_asyncio.fixture
async def runtime_factory(make_settings, backend, google_sdk, auth_prompt):
    """Factory for client runtimes talking to the mock backend."""
    runtimes = []

    async def _create(platform: str = "ios", base_url: str = None, **overrides):
        runtime = create_runtime(
            make_settings(platform, base_url or backend.url, **overrides),
            google_sdk=google_sdk,
            auth_prompt=auth_prompt,
        )
        await runtime.api_client.start()
        runtimes.append(runtime)
        return runtime

    yield _create

    for runtime in runtimes:
        await runtime.api_client.close()


@pytest_asyncio.fixture
async def unreachable_url():
    """URL of a port nothing listens on any more."""
    backend = MockBackend()
    await backend.start()
    url = backend.url
    await backend.close()
    return url
