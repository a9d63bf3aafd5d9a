from __future__ import annotations

import types

import anyio


class AsyncRWLock:
    """
    Many concurrent readers or one exclusive writer.

    A writer that is waiting stops new readers from entering, so a steady
    stream of readers cannot keep it out forever.

    Example:
        ```python
        lock = AsyncRWLock()

        async with lock.reader:
            ...

        async with lock.writer:
            ...
        ```
    """

    def __init__(self) -> None:
        self._condition = anyio.Condition()
        self._readers = 0
        self._writing = False
        self._waiting_writers = 0
        self.reader = _ReadLock(self)
        self.writer = _WriteLock(self)

    async def acquire_read(self) -> None:
        async with self._condition:
            while self._writing or self._waiting_writers:
                await self._condition.wait()
            self._readers += 1

    async def release_read(self) -> None:
        with anyio.CancelScope(shield=True):
            async with self._condition:
                self._readers -= 1
                if not self._readers:
                    self._condition.notify_all()

    async def acquire_write(self) -> None:
        async with self._condition:
            self._waiting_writers += 1
            try:
                while self._writing or self._readers:
                    await self._condition.wait()
            except BaseException:
                self._waiting_writers -= 1
                self._condition.notify_all()
                raise
            self._waiting_writers -= 1
            self._writing = True

    async def release_write(self) -> None:
        with anyio.CancelScope(shield=True):
            async with self._condition:
                self._writing = False
                self._condition.notify_all()

    @property
    def readers(self) -> int:
        return self._readers

    @property
    def writing(self) -> bool:
        return self._writing


class _ReadLock:
    def __init__(self, lock: AsyncRWLock) -> None:
        self._lock = lock

    async def __aenter__(self) -> None:
        await self._lock.acquire_read()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: types.TracebackType | None = None,
    ) -> None:
        await self._lock.release_read()


class _WriteLock:
    def __init__(self, lock: AsyncRWLock) -> None:
        self._lock = lock

    async def __aenter__(self) -> None:
        await self._lock.acquire_write()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: types.TracebackType | None = None,
    ) -> None:
        await self._lock.release_write()
