"""HTTP middleware. Applied in taskdesk.main; last added = outermost."""

from taskdesk.middleware.request_context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
