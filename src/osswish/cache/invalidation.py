"""Cache invalidation.

CacheInvalidator forcibly expires entries in the process TTL store. It is
used by the write path right after a mutation and by the refresh webhook
when the scheduled snapshot job changed the source out of band.
Invalidation is synchronous and never fails.

With horizontal scaling each instance has its own memory layer, so an
optional InvalidationBroadcaster relays invalidations to every instance over
Redis Pub/Sub. Publishing happens in a background task so ``invalidate``
never waits on the network.

Example:
    broadcaster = InvalidationBroadcaster(instance_id="a1b2c3d4")
    invalidator = CacheInvalidator(store, broadcaster=broadcaster)
    broadcaster.add_handler(invalidator.handle_message)
    await broadcaster.start()

    invalidator.invalidate(CacheKeys.WISHLISTS_FULL)  # every instance clears it
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, cast

import orjson

from osswish.cache.keys import CacheKeys
from osswish.cache.memory import TTLCacheStore
from osswish.cache.redis import get_redis

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from redis.asyncio.client import PubSub

logger = logging.getLogger(__name__)

# Pub/Sub channel name
INVALIDATION_CHANNEL = f"{CacheKeys.PREFIX}:cache:invalidation"


class InvalidationType(str, Enum):
    """Type of cache invalidation."""

    KEY = "key"
    ALL = "all"


@dataclass
class InvalidationMessage:
    """Cache invalidation message."""

    type: InvalidationType
    key: str
    origin: str = ""

    def to_bytes(self) -> bytes:
        return orjson.dumps({"type": self.type.value, "key": self.key, "origin": self.origin})

    @classmethod
    def from_bytes(cls, data: bytes) -> "InvalidationMessage":
        parsed = orjson.loads(data)
        return cls(
            type=InvalidationType(parsed["type"]),
            key=parsed["key"],
            origin=parsed.get("origin", ""),
        )


InvalidationHandler = Callable[[InvalidationMessage], Awaitable[None]]


class InvalidationBroadcaster:
    """Broadcasts and receives invalidation messages via Redis Pub/Sub.

    Started during application startup and stopped during shutdown.
    """

    def __init__(self, instance_id: str, channel: str = INVALIDATION_CHANNEL) -> None:
        self.instance_id = instance_id
        self.channel = channel
        self._handlers: list[InvalidationHandler] = []
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._pubsub: PubSub | None = None
        self._redis: Redis | None = None

    async def _get_redis(self) -> Redis:
        if self._redis is None:
            self._redis = await get_redis()
        return self._redis

    def add_handler(self, handler: InvalidationHandler) -> None:
        """Register a handler for invalidation messages."""
        self._handlers.append(handler)

    async def start(self) -> None:
        """Start listening for invalidation messages."""
        if self._running:
            return

        redis = await self._get_redis()
        self._pubsub = redis.pubsub()
        await self._pubsub.subscribe(self.channel)

        self._running = True
        self._task = asyncio.create_task(self._listen_loop())
        logger.info(f"Started cache invalidation broadcaster on channel {self.channel}")

    async def stop(self) -> None:
        """Stop listening for invalidation messages."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        if self._pubsub:
            await self._pubsub.unsubscribe(self.channel)
            await self._pubsub.aclose()
            self._pubsub = None

        logger.info("Stopped cache invalidation broadcaster")

    async def _listen_loop(self) -> None:
        while self._running and self._pubsub:
            try:
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=1.0,
                )
                if message is not None and message["type"] == "message":
                    await self.handle_raw(message["data"])
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in invalidation listener: {e}")
                await asyncio.sleep(1)

    async def handle_raw(self, data: bytes) -> None:
        """Decode an incoming message and dispatch it to handlers."""
        try:
            msg = InvalidationMessage.from_bytes(data)
        except (orjson.JSONDecodeError, KeyError, ValueError) as e:
            logger.error(f"Failed to parse invalidation message: {e}")
            return

        if msg.origin == self.instance_id:
            return

        for handler in self._handlers:
            try:
                await handler(msg)
            except Exception as e:
                logger.error(f"Invalidation handler failed: {e}")

    async def publish(self, message: InvalidationMessage) -> int:
        """Publish an invalidation message to all instances.

        Returns the number of subscribers that received the message.
        """
        message.origin = self.instance_id
        redis = await self._get_redis()
        count = cast(int, await redis.publish(self.channel, message.to_bytes()))
        logger.debug(f"Published invalidation {message.type.value} {message.key} to {count}")
        return count


class CacheInvalidator:
    """Expires keys in the process TTL store, optionally on every instance."""

    def __init__(
        self,
        memory: TTLCacheStore,
        broadcaster: InvalidationBroadcaster | None = None,
    ) -> None:
        self.memory = memory
        self.broadcaster = broadcaster
        self._background: set[asyncio.Task[int]] = set()

    def invalidate(self, key: str) -> bool:
        """Expire one key. Returns whether an entry was present locally."""
        existed = self.memory.clear(key)
        logger.info(f"Cache cleared: {key}", extra={"cache_key": key, "existed": existed})
        self._announce(InvalidationMessage(type=InvalidationType.KEY, key=key))
        return existed

    def invalidate_many(self, keys: Iterable[str]) -> list[str]:
        """Expire several keys. Returns the keys that had a local entry."""
        return [key for key in keys if self.invalidate(key)]

    def invalidate_all(self) -> None:
        """Drop every entry and reset statistics."""
        self.memory.clear_all()
        logger.info("Cache cleared: all entries")
        self._announce(InvalidationMessage(type=InvalidationType.ALL, key="*"))

    async def handle_message(self, message: InvalidationMessage) -> None:
        """Apply an invalidation received from another instance."""
        if message.type == InvalidationType.ALL:
            self.memory.clear_all()
        else:
            self.memory.clear(message.key)
        logger.debug(f"Applied remote invalidation {message.type.value} {message.key}")

    async def drain(self) -> None:
        """Wait for pending broadcasts to finish."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    def _announce(self, message: InvalidationMessage) -> None:
        if self.broadcaster is None:
            return
        try:
            task = asyncio.get_running_loop().create_task(self.broadcaster.publish(message))
        except RuntimeError:
            logger.debug("No running event loop, skipping invalidation broadcast")
            return
        self._background.add(task)
        task.add_done_callback(self._on_published)

    def _on_published(self, task: asyncio.Task[int]) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(f"Invalidation broadcast failed, other instances expire by TTL: {exc}")
