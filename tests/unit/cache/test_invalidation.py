"""Tests for cache invalidation and the Redis broadcaster."""

from __future__ import annotations

from unittest.mock import AsyncMock

import orjson
import pytest

from osswish.cache.invalidation import (
    INVALIDATION_CHANNEL,
    CacheInvalidator,
    InvalidationBroadcaster,
    InvalidationMessage,
    InvalidationType,
)
from osswish.cache.keys import CacheKeys
from osswish.cache.memory import TTLCacheStore


class TestInvalidationMessage:
    """Test message encoding."""

    def test_to_bytes(self) -> None:
        msg = InvalidationMessage(type=InvalidationType.KEY, key="k", origin="a1")
        assert orjson.loads(msg.to_bytes()) == {"type": "key", "key": "k", "origin": "a1"}

    def test_from_bytes_without_origin(self) -> None:
        msg = InvalidationMessage.from_bytes(b'{"type": "all", "key": "*"}')
        assert msg.type == InvalidationType.ALL
        assert msg.key == "*"
        assert msg.origin == ""

    def test_channel_is_namespaced(self) -> None:
        assert INVALIDATION_CHANNEL == "osswish:cache:invalidation"


class TestCacheInvalidator:
    """Test local invalidation."""

    def test_invalidate_existing_key(self, memory: TTLCacheStore) -> None:
        """Subsequent get is a miss immediately after invalidation."""
        memory.set(CacheKeys.WISHLISTS_FULL, "data")
        invalidator = CacheInvalidator(memory)

        assert invalidator.invalidate(CacheKeys.WISHLISTS_FULL) is True
        assert memory.get(CacheKeys.WISHLISTS_FULL) is None

    def test_invalidate_missing_key_is_noop(self, memory: TTLCacheStore) -> None:
        invalidator = CacheInvalidator(memory)
        assert invalidator.invalidate("never-set") is False

    def test_invalidate_many_reports_present_keys(self, memory: TTLCacheStore) -> None:
        memory.set(CacheKeys.WISHLISTS_FULL, "data")
        invalidator = CacheInvalidator(memory)

        cleared = invalidator.invalidate_many(CacheKeys.REFRESH_KEYS)

        assert cleared == [CacheKeys.WISHLISTS_FULL]
        assert len(memory) == 0

    def test_invalidate_all(self, memory: TTLCacheStore) -> None:
        memory.set("a", 1)
        memory.set("b", 2)
        memory.get("a")
        CacheInvalidator(memory).invalidate_all()
        assert len(memory) == 0
        assert memory.get_stats() == {}

    @pytest.mark.asyncio
    async def test_handle_remote_key_message(self, memory: TTLCacheStore) -> None:
        memory.set("a", 1)
        memory.set("b", 2)
        invalidator = CacheInvalidator(memory)

        await invalidator.handle_message(InvalidationMessage(type=InvalidationType.KEY, key="a"))

        assert memory.keys() == ["b"]

    @pytest.mark.asyncio
    async def test_handle_remote_all_message(self, memory: TTLCacheStore) -> None:
        memory.set("a", 1)
        invalidator = CacheInvalidator(memory)

        await invalidator.handle_message(InvalidationMessage(type=InvalidationType.ALL, key="*"))

        assert len(memory) == 0

    def test_no_broadcast_outside_event_loop(self, memory: TTLCacheStore) -> None:
        """Synchronous callers without a running loop still invalidate locally."""
        broadcaster = InvalidationBroadcaster(instance_id="a1")
        broadcaster.publish = AsyncMock(return_value=1)  # type: ignore[method-assign]
        memory.set("k", 1)

        assert CacheInvalidator(memory, broadcaster=broadcaster).invalidate("k") is True
        broadcaster.publish.assert_not_called()

    @pytest.mark.asyncio
    async def test_invalidate_announces_to_broadcaster(self, memory: TTLCacheStore) -> None:
        broadcaster = InvalidationBroadcaster(instance_id="a1")
        broadcaster.publish = AsyncMock(return_value=1)  # type: ignore[method-assign]
        invalidator = CacheInvalidator(memory, broadcaster=broadcaster)

        invalidator.invalidate("k")
        invalidator.invalidate_all()
        await invalidator.drain()

        sent = [call.args[0] for call in broadcaster.publish.await_args_list]
        assert [(m.type, m.key) for m in sent] == [
            (InvalidationType.KEY, "k"),
            (InvalidationType.ALL, "*"),
        ]

    @pytest.mark.asyncio
    async def test_broadcast_failure_does_not_raise(self, memory: TTLCacheStore) -> None:
        broadcaster = InvalidationBroadcaster(instance_id="a1")
        broadcaster.publish = AsyncMock(  # type: ignore[method-assign]
            side_effect=ConnectionError("redis down")
        )
        memory.set("k", 1)
        invalidator = CacheInvalidator(memory, broadcaster=broadcaster)

        assert invalidator.invalidate("k") is True
        await invalidator.drain()
        assert memory.get("k") is None


class TestInvalidationBroadcaster:
    """Test message dispatch and publishing."""

    @pytest.mark.asyncio
    async def test_handle_raw_dispatches(self) -> None:
        broadcaster = InvalidationBroadcaster(instance_id="a1")
        handler = AsyncMock()
        broadcaster.add_handler(handler)

        await broadcaster.handle_raw(b'{"type": "key", "key": "k", "origin": "b2"}')

        handler.assert_awaited_once()
        assert handler.await_args.args[0].key == "k"

    @pytest.mark.asyncio
    async def test_handle_raw_skips_own_messages(self) -> None:
        broadcaster = InvalidationBroadcaster(instance_id="a1")
        handler = AsyncMock()
        broadcaster.add_handler(handler)

        await broadcaster.handle_raw(b'{"type": "key", "key": "k", "origin": "a1"}')

        handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_handle_raw_ignores_garbage(self) -> None:
        broadcaster = InvalidationBroadcaster(instance_id="a1")
        handler = AsyncMock()
        broadcaster.add_handler(handler)

        await broadcaster.handle_raw(b"not json")
        await broadcaster.handle_raw(b'{"type": "bogus", "key": "k"}')

        handler.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_block_others(self) -> None:
        broadcaster = InvalidationBroadcaster(instance_id="a1")
        second = AsyncMock()
        broadcaster.add_handler(AsyncMock(side_effect=RuntimeError("boom")))
        broadcaster.add_handler(second)

        await broadcaster.handle_raw(b'{"type": "all", "key": "*", "origin": "b2"}')

        second.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_publish_stamps_origin(self) -> None:
        broadcaster = InvalidationBroadcaster(instance_id="a1")
        redis = AsyncMock()
        redis.publish.return_value = 3
        broadcaster._redis = redis

        count = await broadcaster.publish(InvalidationMessage(type=InvalidationType.KEY, key="k"))

        assert count == 3
        channel, payload = redis.publish.await_args.args
        assert channel == INVALIDATION_CHANNEL
        assert orjson.loads(payload)["origin"] == "a1"
