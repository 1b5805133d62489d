"""API middleware."""

from parley.api.middleware.context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
