from __future__ import annotations

import logging
import typing as t
from dataclasses import dataclass

import anyio
from anyio.abc import ObjectReceiveStream

from replaycache._indexers import Indexer, Skipper, default_indexer, default_skipper
from replaycache._models import Entry, Request
from replaycache._store import CacheStore
from replaycache._utils import parse_date
from replaycache._writer import (
    ASGIApp,
    ASGIResponseWriter,
    CapturingWriter,
    Receive,
    Scope,
    Send,
    narrow_extensions,
)

logger = logging.getLogger(__name__)

# Removed from a replayed response when it is answered with 304.
NOT_MODIFIED_STRIPPED_HEADERS = ("Content-Type", "Content-Length", "Accept-Ranges")


@dataclass
class Config:
    """
    Options for `CacheMiddleware`. Fields left as None use the defaults.

    Args:
        skipper: Returns True for requests that must bypass the cache entirely.
        indexer: Maps a request to its cache key.
        invalidation: Stream of keys to evict; an empty string clears the cache.
    """

    skipper: Skipper | None = None
    indexer: Indexer | None = None
    invalidation: ObjectReceiveStream[str] | None = None


DEFAULT_CONFIG = Config(skipper=default_skipper, indexer=default_indexer)


class CacheMiddleware:
    """
    ASGI middleware that keeps full copies of successful responses in memory.

    The first request for a key runs the wrapped application while a
    `CapturingWriter` records what it sends. A 200 response is then stored and
    every later request with the same key is answered from memory without
    calling the application. Entries stay until they are invalidated.

    When the stored response has a `Last-Modified` header and the request's
    `If-Modified-Since` names the same instant, the reply is a bodyless 304.

    Args:
        app: The ASGI application to wrap.
        config: Skip predicate, indexer and invalidation stream. Defaults to DEFAULT_CONFIG.
        store: The store to use. Defaults to a new, private `CacheStore`.

    Example:
        ```python
        import anyio
        from replaycache import CacheMiddleware, Config

        send_stream, receive_stream = anyio.create_memory_object_stream[str](100)
        app = CacheMiddleware(my_asgi_app, config=Config(invalidation=receive_stream))

        # later, from anywhere in the process
        await send_stream.send("GET:/articles")
        ```
    """

    def __init__(
        self,
        app: ASGIApp,
        config: Config | None = None,
        store: CacheStore | None = None,
    ) -> None:
        config = config if config is not None else DEFAULT_CONFIG
        self.app = app
        self.skipper = config.skipper or default_skipper
        self.indexer = config.indexer or default_indexer
        self.invalidation = config.invalidation
        self.store = store if store is not None else CacheStore()

        logger.info(
            "Initialized CacheMiddleware with skipper=%s, indexer=%s, invalidation=%s",
            getattr(self.skipper, "__name__", type(self.skipper).__name__),
            getattr(self.indexer, "__name__", type(self.indexer).__name__),
            "enabled" if self.invalidation is not None else "disabled",
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan" and self.invalidation is not None:
            await self._run_with_invalidation(scope, receive, send)
            return

        if scope["type"] != "http":
            logger.debug("Skipping non-HTTP request: type=%s", scope["type"])
            await self.app(scope, receive, send)
            return

        request = Request.from_scope(scope)
        if self.skipper(request):
            logger.debug("Skipping cache: method=%s path=%s", request.method, request.path)
            await self.app(scope, receive, send)
            return

        key = self.indexer(request)
        writer = ASGIResponseWriter(scope, receive, send)

        entry = await self.store.get(key)
        if entry is not None:
            await self._replay(key, entry, request, writer)
            return

        logger.debug("Cache miss: key=%s", key)
        await self._capture(key, scope, receive, writer)

    async def _replay(self, key: str, entry: Entry, request: Request, writer: ASGIResponseWriter) -> None:
        writer.headers.extend(entry.headers)

        if self._not_modified(entry, request):
            logger.debug("Not modified: key=%s", key)
            for name in NOT_MODIFIED_STRIPPED_HEADERS:
                writer.headers.pop(name, None)
            await writer.write_status(304)
            await writer.write(b"", more_body=False)
            return

        logger.debug("Cache hit: key=%s size=%d bytes", key, len(entry.body))
        await writer.write_status(200)
        await writer.write(entry.body, more_body=False)

    async def _capture(self, key: str, scope: Scope, receive: Receive, writer: ASGIResponseWriter) -> None:
        sink = CapturingWriter(writer)
        try:
            await self.app(narrow_extensions(scope), receive, sink)
        except Exception:
            logger.error("Error calling wrapped application: key=%s", key, exc_info=True)
            raise

        if sink.status != 200 or not sink.replayable or sink.hijacked:
            logger.debug(
                "Response not cached: key=%s status=%s replayable=%s",
                key,
                sink.status,
                sink.replayable and not sink.hijacked,
            )
            return

        await self.store.put(key, Entry.create(sink.body, sink.headers))

    @staticmethod
    def _not_modified(entry: Entry, request: Request) -> bool:
        if entry.last_modified is None:
            return False
        value = request.headers.get("If-Modified-Since")
        if not value:
            return False
        return parse_date(value) == entry.last_modified

    async def _run_with_invalidation(self, scope: Scope, receive: Receive, send: Send) -> None:
        assert self.invalidation is not None
        error: BaseException | None = None
        async with anyio.create_task_group() as tg:
            tg.start_soon(self.store.consume, self.invalidation)
            try:
                await self.app(scope, receive, send)
            except Exception as exc:
                error = exc
            finally:
                tg.cancel_scope.cancel()
        if error is not None:
            raise error


def new(config: Config | None = None) -> t.Callable[[ASGIApp], ASGIApp]:
    """
    Create a middleware factory.

    Every application wrapped by the returned callable shares one store,
    created here, so keys produced for different wrapped applications live
    side by side and are invalidated together.

    Example:
        ```python
        from replaycache import new

        cache = new()
        app = cache(my_asgi_app)
        ```
    """
    store = CacheStore()

    def wrap(app: ASGIApp) -> ASGIApp:
        return CacheMiddleware(app, config=config, store=store)

    return wrap
