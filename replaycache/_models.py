from __future__ import annotations

import typing as t
from dataclasses import dataclass, field

from replaycache._headers import Headers, HeaderSnapshot
from replaycache._utils import parse_date

if t.TYPE_CHECKING:
    from replaycache._writer import Scope


@dataclass(frozen=True)
class Request:
    """Read-only view of the parts of an ASGI HTTP scope the cache looks at."""

    method: str
    path: str
    query_string: str = ""
    headers: Headers = field(default_factory=Headers)

    @classmethod
    def from_scope(cls, scope: Scope) -> "Request":
        return cls(
            method=scope.get("method", "GET"),
            path=scope.get("path", "/"),
            query_string=scope.get("query_string", b"").decode("latin1"),
            headers=Headers.from_raw(scope.get("headers", [])),
        )


@dataclass(frozen=True)
class Entry:
    """
    A captured 200 response.

    Entries are never updated in place: the store only ever swaps a whole
    entry in or out, so a reader holding an entry can use it without a lock.
    """

    body: bytes
    headers: HeaderSnapshot
    last_modified: t.Optional[int] = None

    @classmethod
    def create(cls, body: bytes, headers: Headers) -> "Entry":
        snapshot = HeaderSnapshot.of(headers)
        last_modified = None
        value = snapshot.first("Last-Modified")
        if value:
            last_modified = parse_date(value)
        return cls(body=bytes(body), headers=snapshot, last_modified=last_modified)
