"""Cache key schema for the wishlist cache.

Key format: {prefix}:{scope}:{variant}

Where:
- prefix: "osswish" (namespace shared with the Redis invalidation channel)
- scope: "wishlists" (all wishlists), "user_wishlists" (per-maintainer view)
- variant: "full" for the complete snapshot

The two full-cache keys keep their historical names because the scheduled
snapshot job posts them to the invalidation endpoint.
"""

from __future__ import annotations


class CacheKeys:
    """Cache key constants and helpers."""

    PREFIX = "osswish"

    WISHLISTS_FULL = "wishlists_full_cache"
    USER_WISHLISTS_FULL = "user_wishlists_full_cache"

    # Keys cleared when the snapshot source changes out of band
    REFRESH_KEYS: tuple[str, ...] = (WISHLISTS_FULL, USER_WISHLISTS_FULL)

    @classmethod
    def scoped(cls, scope: str, variant: str = "full") -> str:
        """Namespaced key for additional cached views."""
        return f"{cls.PREFIX}:{scope}:{variant}"

    @classmethod
    def parse_key(cls, key: str) -> dict[str, str] | None:
        """Parse a namespaced key into its components.

        Returns None if the key doesn't match the expected format.
        """
        parts = key.split(":")
        if len(parts) != 3 or parts[0] != cls.PREFIX:
            return None
        return {"prefix": parts[0], "scope": parts[1], "variant": parts[2]}

    @classmethod
    def is_valid(cls, key: str) -> bool:
        """Known full-cache key or a well-formed namespaced key."""
        return key in cls.REFRESH_KEYS or cls.parse_key(key) is not None
