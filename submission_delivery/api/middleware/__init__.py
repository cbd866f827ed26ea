"""HTTP middleware."""

from submission_delivery.api.middleware.logging_middleware import LoggingMiddleware

__all__ = ["LoggingMiddleware"]
