"""
Backend API client.

Thin wrapper around one aiohttp.ClientSession that runs every call through
the interceptor pipeline and turns failures into typed exceptions.
"""
import asyncio
import json
from typing import Any, Callable, Dict, Optional

import aiohttp
from aiohttp.abc import AbstractCookieJar
import structlog
from pydantic import ValidationError

from speech_client.core.exceptions import ApiError, AuthenticationError, NetworkError
from speech_client.domain.schemas.auth import AppErrorResponse
from .interceptors import ApiResponse, InterceptorPipeline, RequestContext

logger = structlog.get_logger(__name__)


def _parse_body(text: str) -> Any:
    if not text:
        return None
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return text


def _parse_error_body(data: Any) -> Optional[AppErrorResponse]:
    if not isinstance(data, dict):
        return None
    try:
        return AppErrorResponse.model_validate(data)
    except ValidationError:
        return None


class ApiClient:
    """Async HTTP client bound to the backend base URL."""

    def __init__(
        self,
        base_url: str,
        pipeline: Optional[InterceptorPipeline] = None,
        timeout_seconds: float = 10.0,
        cookie_jar_factory: Optional[Callable[[], AbstractCookieJar]] = None,
    ):
        """
        Args:
            base_url: Backend base URL without trailing slash
            pipeline: Interceptor pipeline run for every call
            timeout_seconds: Total timeout per request
            cookie_jar_factory: Builds the session cookie jar; needs a running loop
        """
        self.base_url = base_url.rstrip("/")
        self.pipeline = pipeline or InterceptorPipeline()
        self.timeout = aiohttp.ClientTimeout(total=timeout_seconds)
        self.cookie_jar_factory = cookie_jar_factory
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def is_started(self) -> bool:
        return self._session is not None and not self._session.closed

    @property
    def cookie_jar(self) -> Optional[AbstractCookieJar]:
        return self._session.cookie_jar if self._session else None

    async def start(self) -> None:
        """Open the underlying HTTP session."""
        if self.is_started:
            return
        cookie_jar = self.cookie_jar_factory() if self.cookie_jar_factory else None
        self._session = aiohttp.ClientSession(timeout=self.timeout, cookie_jar=cookie_jar)
        logger.debug("api_client_started", base_url=self.base_url)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            logger.debug("api_client_closed")
        self._session = None

    async def __aenter__(self) -> "ApiClient":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        refresh_tokens: bool = True,
        expire_session: bool = True,
    ) -> ApiResponse:
        """
        Perform a request through the interceptor pipeline.

        Args:
            method: HTTP method
            path: Path relative to the base URL
            json: JSON body
            params: Query parameters
            headers: Extra request headers
            refresh_tokens: Persist tokens re-issued in response headers
            expire_session: Let a terminating 401 invalidate the session

        Returns:
            Successful response

        Raises:
            NetworkError: No response was received
            AuthenticationError: Backend answered 401
            ApiError: Backend answered with another non-2xx status
        """
        await self.start()

        request = RequestContext(
            method=method.upper(),
            path=path,
            headers=dict(headers or {}),
            params=params,
            json=json,
            refresh_tokens=refresh_tokens,
            expire_session=expire_session,
        )
        await self.pipeline.run_request(request)

        try:
            async with self._session.request(
                request.method,
                self.url_for(request.path),
                json=request.json,
                params=request.params,
                headers=request.headers,
            ) as response:
                status = response.status
                response_headers = response.headers.copy()
                body = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(
                "api_request_no_response",
                method=request.method,
                path=request.path,
                error_type=type(e).__name__,
            )
            error = NetworkError(str(e) or "Network request failed", method=request.method, path=request.path)
            await self.pipeline.run_error(error, request)
            raise error from e

        data = _parse_body(body)

        if not 200 <= status < 300:
            error_body = _parse_error_body(data)
            error_class = AuthenticationError if status == 401 else ApiError
            error = error_class(status, error=error_body, path=request.path)
            logger.info(
                "api_request_failed",
                method=request.method,
                path=request.path,
                status=status,
                code=error.code,
            )
            await self.pipeline.run_error(error, request)
            raise error

        api_response = ApiResponse(
            method=request.method,
            path=request.path,
            status=status,
            headers=response_headers,
            data=data,
            request=request,
        )
        await self.pipeline.run_response(api_response)
        return api_response

    async def get(self, path: str, **kwargs) -> Any:
        return (await self.request("GET", path, **kwargs)).data

    async def post(self, path: str, **kwargs) -> Any:
        return (await self.request("POST", path, **kwargs)).data

    async def patch(self, path: str, **kwargs) -> Any:
        return (await self.request("PATCH", path, **kwargs)).data
