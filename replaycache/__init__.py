from replaycache._exceptions import (
    HijackedError as HijackedError,
    NotSupportedError as NotSupportedError,
    ReplayCacheError as ReplayCacheError,
)
from replaycache._headers import Headers as Headers, HeaderSnapshot as HeaderSnapshot
from replaycache._indexers import (
    Indexer as Indexer,
    Skipper as Skipper,
    default_indexer as default_indexer,
    default_skipper as default_skipper,
    encoding_indexer as encoding_indexer,
)
from replaycache._models import Entry as Entry, Request as Request
from replaycache._store import CacheStore as CacheStore
from replaycache._synchronization import AsyncRWLock as AsyncRWLock
from replaycache._writer import (
    ASGIResponseWriter as ASGIResponseWriter,
    CapturingWriter as CapturingWriter,
    CloseNotifier as CloseNotifier,
    Flusher as Flusher,
    Hijacker as Hijacker,
    Pusher as Pusher,
    ResponseWriter as ResponseWriter,
)
from replaycache.asgi import (
    DEFAULT_CONFIG as DEFAULT_CONFIG,
    CacheMiddleware as CacheMiddleware,
    Config as Config,
    new as new,
)

__all__ = (
    # Middleware
    "CacheMiddleware",
    "Config",
    "DEFAULT_CONFIG",
    "new",
    ## Indexing
    "Indexer",
    "Skipper",
    "default_indexer",
    "default_skipper",
    "encoding_indexer",
    ## Models
    "Request",
    "Entry",
    ## Headers
    "Headers",
    "HeaderSnapshot",
    ## Storage
    "CacheStore",
    "AsyncRWLock",
    ## Writers
    "ResponseWriter",
    "ASGIResponseWriter",
    "CapturingWriter",
    "Flusher",
    "Pusher",
    "Hijacker",
    "CloseNotifier",
    ## Errors
    "ReplayCacheError",
    "NotSupportedError",
    "HijackedError",
)
