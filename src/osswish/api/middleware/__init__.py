"""Middleware for the wishlist cache API.

Note: For CORS on the public feed, headers are set per route.
"""

from osswish.api.middleware.correlation import CorrelationMiddleware

__all__ = ["CorrelationMiddleware"]
