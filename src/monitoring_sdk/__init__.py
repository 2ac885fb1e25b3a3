"""
Monitoring SDK - Async-first SDK for a cloud monitoring API.

This SDK provides:
- Async client for droplet/app metrics and alert policies
- Synchronous wrapper for sync operations
- Ordered middleware pipeline around every call
- Multiple HTTP transport support
- Token management with caching
- Reusable parameter catalog with validation
"""

from .auth import AuthError
from .auth import TokenProvider
from .auth_middleware import AuthMiddleware
from .cache_clear_middleware import AlertCacheMiddleware
from .client import MonitoringClient
from .client_sync import MonitoringClientSync
from .config import MonitoringAPISettings
from .exceptions import BodyConsumedError
from .exceptions import InvalidMiddlewareResult
from .exceptions import MonitoringAPIError
from .exceptions import ParameterValidationError
from .exceptions import UnexpectedStatusError
from .logging_middleware import LoggingMiddleware
from .messages import Body
from .messages import Request
from .messages import Response
from .middleware import Middleware
from .middleware import MiddlewareContext
from .parameters import PARAMETERS
from .parameters import ParameterObject
from .pipeline import MiddlewarePipeline
from .status_middleware import RaiseForStatusMiddleware
from .token_store import FileTokenStore
from .token_store import TokenStore

__version__ = "1.0.0"

__all__ = [
    "MonitoringClient",
    "MonitoringClientSync",
    "MonitoringAPISettings",
    "MiddlewarePipeline",
    "Middleware",
    "MiddlewareContext",
    "Request",
    "Response",
    "Body",
    "TokenProvider",
    "AuthMiddleware",
    "LoggingMiddleware",
    "RaiseForStatusMiddleware",
    "AlertCacheMiddleware",
    "PARAMETERS",
    "ParameterObject",
    "AuthError",
    "MonitoringAPIError",
    "UnexpectedStatusError",
    "BodyConsumedError",
    "InvalidMiddlewareResult",
    "ParameterValidationError",
    "TokenStore",
    "FileTokenStore",
]
