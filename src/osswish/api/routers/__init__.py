"""API routers for the wishlist cache service."""

from osswish.api.routers import cache, health, wishlists

__all__ = ["cache", "health", "wishlists"]
