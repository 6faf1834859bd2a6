"""Tests for cache key constants and helpers."""

from osswish.cache.keys import CacheKeys


class TestCacheKeys:
    """Test cache key schema."""

    def test_full_cache_key_names(self) -> None:
        """Full-cache keys keep the names the snapshot job posts."""
        assert CacheKeys.WISHLISTS_FULL == "wishlists_full_cache"
        assert CacheKeys.USER_WISHLISTS_FULL == "user_wishlists_full_cache"

    def test_refresh_keys(self) -> None:
        assert CacheKeys.REFRESH_KEYS == (
            CacheKeys.WISHLISTS_FULL,
            CacheKeys.USER_WISHLISTS_FULL,
        )

    def test_scoped_key(self) -> None:
        """Scoped key has correct format."""
        assert CacheKeys.scoped("wishlists") == "osswish:wishlists:full"
        assert CacheKeys.scoped("user_wishlists", "octocat") == "osswish:user_wishlists:octocat"

    def test_parse_valid_key(self) -> None:
        """Valid key is parsed correctly."""
        result = CacheKeys.parse_key("osswish:wishlists:full")
        assert result == {"prefix": "osswish", "scope": "wishlists", "variant": "full"}

    def test_parse_invalid_key_returns_none(self) -> None:
        """Invalid key returns None."""
        assert CacheKeys.parse_key("invalid") is None
        assert CacheKeys.parse_key("other:wishlists:full") is None
        assert CacheKeys.parse_key("osswish:too:many:parts") is None

    def test_is_valid(self) -> None:
        assert CacheKeys.is_valid(CacheKeys.WISHLISTS_FULL)
        assert CacheKeys.is_valid("osswish:wishlists:full")
        assert not CacheKeys.is_valid("random_key")
