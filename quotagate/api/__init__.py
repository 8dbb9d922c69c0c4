"""FastAPI surface: rate limit middleware plus admin routes for policies and usage."""

from quotagate.api.app import create_app
from quotagate.api.middleware import RateLimitMiddleware, client_key

__all__ = [
    "create_app",
    "RateLimitMiddleware",
    "client_key",
]
