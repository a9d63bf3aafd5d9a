from __future__ import annotations

import typing as t

from replaycache._models import Request
from replaycache._utils import clean_path

Indexer = t.Callable[[Request], str]
Skipper = t.Callable[[Request], bool]


def default_skipper(request: Request) -> bool:
    return False


def default_indexer(request: Request) -> str:
    return request.method + ":" + clean_path(request.path)


def encoding_indexer(encoding: str) -> Indexer:
    """
    Create an indexer that keeps responses for `encoding` apart from the rest.

    Requests whose `Accept-Encoding` mentions `encoding` are indexed as
    `METHOD:encoding:/path`, every other request as `METHOD:/path`. Put it in
    front of a compression middleware so that compressed and plain bodies
    never share a key.

    Example:
        ```python
        from replaycache import Config, encoding_indexer, new

        cache = new(Config(indexer=encoding_indexer("gzip")))
        ```
    """

    def indexer(request: Request) -> str:
        key = request.method
        if encoding in request.headers.get("Accept-Encoding", ""):
            key += ":" + encoding
        return key + ":" + clean_path(request.path)

    return indexer
