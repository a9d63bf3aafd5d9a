from __future__ import annotations

import logging
import typing as t

import anyio
from typing_extensions import Protocol, runtime_checkable

from replaycache._exceptions import HijackedError, NotSupportedError
from replaycache._headers import Headers

logger = logging.getLogger(__name__)

Scope = t.MutableMapping[str, t.Any]
Message = t.MutableMapping[str, t.Any]
Receive = t.Callable[[], t.Awaitable[Message]]
Send = t.Callable[[Message], t.Awaitable[None]]
ASGIApp = t.Callable[[Scope, Receive, Send], t.Awaitable[None]]

PUSH_EXTENSION = "http.response.push"

# Response extensions a CapturingWriter can pass through without losing track of the body.
DELEGATED_EXTENSIONS = frozenset({PUSH_EXTENSION})


class ResponseWriter(Protocol):
    @property
    def headers(self) -> Headers: ...

    async def write_status(self, status: int) -> None: ...

    async def write(self, data: bytes, more_body: bool = True) -> None: ...


@runtime_checkable
class Flusher(Protocol):
    async def flush(self) -> None: ...


@runtime_checkable
class Pusher(Protocol):
    async def push(self, path: str, headers: Headers | None = None) -> None: ...


@runtime_checkable
class Hijacker(Protocol):
    def hijack(self) -> tuple[Receive, Send]: ...


@runtime_checkable
class CloseNotifier(Protocol):
    def close_notify(self) -> anyio.Event | None: ...


def narrow_extensions(scope: Scope) -> Scope:
    """
    Return a copy of `scope` that only advertises response extensions a
    `CapturingWriter` can delegate.

    Applications feature-detect extensions such as `http.response.pathsend`
    through the scope; hiding the ones the sink cannot record makes them fall
    back to ordinary body messages.
    """
    extensions = scope.get("extensions") or {}
    narrowed = {
        name: value
        for name, value in extensions.items()
        if not name.startswith("http.response.") or name in DELEGATED_EXTENSIONS
    }
    return {**scope, "extensions": narrowed}


class ASGIResponseWriter:
    """
    Response writer on top of a single ASGI `send` channel.

    Headers are collected in `headers` and go out together with the status
    in `http.response.start`; the first `write` starts the response with 200
    when no status was written yet.

    Args:
        scope: The ASGI scope of the request being answered.
        receive: The ASGI receive callable.
        send: The ASGI send callable.
    """

    def __init__(self, scope: Scope, receive: Receive, send: Send) -> None:
        self.scope = scope
        self._receive = receive
        self._send = send
        self._headers = Headers()
        self.status: int | None = None
        self.finished = False
        self.hijacked = False

    @property
    def headers(self) -> Headers:
        return self._headers

    async def write_status(self, status: int) -> None:
        self._check_hijacked()
        if self.status is not None:
            logger.debug("Superfluous status write: status=%d already=%d", status, self.status)
            return
        self.status = status
        await self._send(
            {
                "type": "http.response.start",
                "status": status,
                "headers": self._headers.raw(),
            }
        )

    async def write(self, data: bytes, more_body: bool = True) -> None:
        self._check_hijacked()
        if self.status is None:
            await self.write_status(200)
        await self._send({"type": "http.response.body", "body": data, "more_body": more_body})
        self.finished = not more_body

    async def flush(self) -> None:
        if self.finished:
            return
        await self.write(b"", more_body=True)

    async def push(self, path: str, headers: Headers | None = None) -> None:
        self._check_hijacked()
        if PUSH_EXTENSION not in (self.scope.get("extensions") or {}):
            raise NotSupportedError("server push is not supported by this server")
        await self._send(
            {
                "type": PUSH_EXTENSION,
                "path": path,
                "headers": headers.raw() if headers is not None else [],
            }
        )

    def hijack(self) -> tuple[Receive, Send]:
        """Hand the raw ASGI channels over to the caller; this writer is unusable afterwards."""
        self._check_hijacked()
        self.hijacked = True
        return self._receive, self._send

    async def send(self, message: Message) -> None:
        self._check_hijacked()
        await self._send(message)

    def _check_hijacked(self) -> None:
        if self.hijacked:
            raise HijackedError("connection has been hijacked")


class CapturingWriter:
    """
    Response writer that records a copy of everything written through it.

    Every write goes to the wrapped writer as well; errors raised by the
    wrapped writer reach the caller unchanged. The writer is also an ASGI
    `send` callable, so an ASGI application can be pointed at it directly.

    Optional capabilities (flush, push, hijack, close notification) are
    delegated when the wrapped writer has them. Otherwise `flush` does
    nothing, `close_notify` returns None and `push`/`hijack` raise
    `NotSupportedError`.
    """

    def __init__(self, writer: ResponseWriter) -> None:
        self._writer = writer
        self._headers: Headers | None = None
        self._buffer = bytearray()
        self.status: int | None = None
        self.replayable = True
        self.hijacked = False

    @property
    def headers(self) -> Headers:
        # Copied on first use so edits stay off the wrapped writer until the status goes out.
        if self._headers is None:
            self._headers = self._writer.headers.copy()
        return self._headers

    @property
    def body(self) -> bytes:
        return bytes(self._buffer)

    async def write_status(self, status: int) -> None:
        if self.status is None:
            self.status = status
        if self._headers is not None:
            live = self._writer.headers
            live.clear()
            live.extend(self._headers)
        await self._writer.write_status(status)

    async def write(self, data: bytes, more_body: bool = True) -> None:
        if self.status is None:
            await self.write_status(200)
        self._buffer.extend(data)
        await self._writer.write(data, more_body=more_body)

    async def flush(self) -> None:
        if isinstance(self._writer, Flusher):
            if self.status is None:
                await self.write_status(200)
            await self._writer.flush()

    async def push(self, path: str, headers: Headers | None = None) -> None:
        if isinstance(self._writer, Pusher):
            await self._writer.push(path, headers)
            return
        raise NotSupportedError("server push is not supported by the underlying writer")

    def hijack(self) -> tuple[Receive, Send]:
        if isinstance(self._writer, Hijacker):
            receive, send = self._writer.hijack()
            self.hijacked = True
            return receive, send
        raise NotSupportedError("hijacking is not supported by the underlying writer")

    def close_notify(self) -> anyio.Event | None:
        if isinstance(self._writer, CloseNotifier):
            return self._writer.close_notify()
        return None

    async def __call__(self, message: Message) -> None:
        message_type = message["type"]
        if message_type == "http.response.start":
            self.headers.extend(Headers.from_raw(message.get("headers", [])))
            if message.get("trailers", False):
                self.replayable = False
            await self.write_status(message["status"])
        elif message_type == "http.response.body":
            await self.write(message.get("body", b""), more_body=message.get("more_body", False))
        elif message_type == PUSH_EXTENSION:
            await self.push(message["path"], Headers.from_raw(message.get("headers", [])))
        else:
            logger.debug("Forwarding uncapturable message: type=%s", message_type)
            self.replayable = False
            forward = getattr(self._writer, "send", None)
            if forward is None:
                raise NotSupportedError(f"{message_type} is not supported by the underlying writer")
            await forward(message)
