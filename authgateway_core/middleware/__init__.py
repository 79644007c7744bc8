"""Middleware module - Request/response middleware."""

from authgateway_core.middleware.base import Middleware, MiddlewareChain
from authgateway_core.middleware.logging import LoggingConfig, LoggingMiddleware

__all__ = [
    "LoggingConfig",
    "LoggingMiddleware",
    "Middleware",
    "MiddlewareChain",
]
