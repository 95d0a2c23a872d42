"""
HTTP layer: API client and interceptor pipeline.
"""
from .client import ApiClient
from .interceptors import (
    ApiResponse,
    CredentialHeaderInterceptor,
    Interceptor,
    InterceptorPipeline,
    LanguageHeaderInterceptor,
    RequestContext,
    SessionExpiryInterceptor,
    TokenRefreshInterceptor,
    build_auth_pipeline,
)

__all__ = [
    "ApiClient",
    "ApiResponse",
    "CredentialHeaderInterceptor",
    "Interceptor",
    "InterceptorPipeline",
    "LanguageHeaderInterceptor",
    "RequestContext",
    "SessionExpiryInterceptor",
    "TokenRefreshInterceptor",
    "build_auth_pipeline",
]
