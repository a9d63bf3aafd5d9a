from __future__ import annotations

import logging
import typing as t

from anyio.abc import ObjectReceiveStream

from replaycache._models import Entry
from replaycache._synchronization import AsyncRWLock

logger = logging.getLogger(__name__)


class CacheStore:
    """
    In-memory mapping from cache key to `Entry`.

    Lookups share a read lock; every mutation (commit, eviction, clear) takes
    the write lock for the length of a single dict operation. Entries never
    expire, they are only removed through `invalidate` or `clear`.

    Args:
        lock: Lock guarding the mapping. Defaults to a fresh `AsyncRWLock`.
    """

    def __init__(self, lock: AsyncRWLock | None = None) -> None:
        self._entries: dict[str, Entry] = {}
        self._lock = lock if lock is not None else AsyncRWLock()

    async def get(self, key: str) -> Entry | None:
        async with self._lock.reader:
            return self._entries.get(key)

    async def put(self, key: str, entry: Entry) -> None:
        async with self._lock.writer:
            self._entries[key] = entry
        logger.debug("Stored entry: key=%s size=%d bytes", key, len(entry.body))

    async def invalidate(self, key: str) -> None:
        """
        Remove the entry stored under `key`.

        The empty key is the signal to drop every entry at once.
        """
        if not key:
            await self.clear()
            return
        async with self._lock.writer:
            removed = self._entries.pop(key, None)
        logger.debug("Invalidated key=%s found=%s", key, removed is not None)

    async def clear(self) -> None:
        async with self._lock.writer:
            count = len(self._entries)
            self._entries.clear()
        logger.debug("Cleared cache: removed=%d", count)

    async def keys(self) -> t.List[str]:
        async with self._lock.reader:
            return list(self._entries)

    async def consume(self, receive_stream: ObjectReceiveStream[str]) -> None:
        """
        Apply invalidation messages from `receive_stream` until it is closed.

        The stream stays open when the consumer stops, so the same stream can
        be consumed again later (for example by the next lifespan run).

        Messages are handled one at a time in arrival order: an empty string
        clears the store, anything else evicts exactly that key.

        Example:
            ```python
            send_stream, receive_stream = anyio.create_memory_object_stream[str](100)

            async with anyio.create_task_group() as tg:
                tg.start_soon(store.consume, receive_stream)
                await send_stream.send("GET:/index.html")
            ```
        """
        logger.info("Invalidation consumer started")
        async for key in receive_stream:
            await self.invalidate(key)
        logger.info("Invalidation consumer stopped")

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
