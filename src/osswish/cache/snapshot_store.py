"""Durable snapshot storage.

The snapshot file is shared across process restarts and across instances
reading the same volume, so writers never edit it in place: the document is
written to a temporary file in the same directory and moved over the target
with an atomic replace. Readers see either the previous or the next complete
document, never a partial one.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from uuid import uuid4

import aiofiles  # type: ignore[import-untyped]
import aiofiles.os  # type: ignore[import-untyped]
import orjson
from pydantic import ValidationError

from osswish.core.errors import SnapshotPersistenceError
from osswish.core.model import Snapshot

logger = logging.getLogger(__name__)


class SnapshotStore(ABC):
    """Abstract base class for durable snapshot backends."""

    @abstractmethod
    async def read(self) -> Snapshot | None:
        """Load the stored snapshot.

        Returns:
            The snapshot, or None if nothing has been stored yet.

        Raises:
            SnapshotPersistenceError: If the stored document is unreadable
        """
        ...

    @abstractmethod
    async def write(self, snapshot: Snapshot) -> None:
        """Persist ``snapshot``, replacing any previous document.

        Raises:
            SnapshotPersistenceError: If the document could not be written
        """
        ...


class LocalSnapshotStore(SnapshotStore):
    """Snapshot stored as a JSON file on the local filesystem."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def read(self) -> Snapshot | None:
        if not await aiofiles.os.path.exists(self.path):
            return None

        try:
            async with aiofiles.open(self.path, "rb") as f:
                content = await f.read()
            return Snapshot.model_validate(orjson.loads(content))
        except (OSError, orjson.JSONDecodeError, ValidationError) as e:
            raise SnapshotPersistenceError(f"Unreadable snapshot at {self.path}: {e}") from e

    async def write(self, snapshot: Snapshot) -> None:
        payload = orjson.dumps(snapshot.to_json_dict(), option=orjson.OPT_INDENT_2)
        tmp_path = self.path.with_name(f".{self.path.name}.{uuid4().hex}.tmp")

        try:
            await aiofiles.os.makedirs(self.path.parent, exist_ok=True)
            async with aiofiles.open(tmp_path, "wb") as f:
                await f.write(payload)
            await aiofiles.os.replace(tmp_path, self.path)
        except OSError as e:
            if await aiofiles.os.path.exists(tmp_path):
                await aiofiles.os.remove(tmp_path)
            raise SnapshotPersistenceError(f"Failed to write snapshot to {self.path}: {e}") from e

        logger.debug(
            f"Wrote snapshot to {self.path} "
            f"({snapshot.total_wishlists} wishlists, {len(payload)} bytes)"
        )
