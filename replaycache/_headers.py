from __future__ import annotations

from typing import (
    Any,
    Iterable,
    Iterator,
    List,
    Mapping,
    MutableMapping,
    Optional,
    Tuple,
    Union,
)

from replaycache._utils import HEADERS_ENCODING

RawHeaders = List[Tuple[bytes, bytes]]


class Headers(MutableMapping[str, str]):
    """
    Case-insensitive, multi-valued header mapping.

    Item access joins every value of a field with ", ". Assigning an item
    replaces all values of that field; use `add` to append another value.
    """

    def __init__(self, headers: Optional[Mapping[str, Union[str, List[str]]]] = None) -> None:
        self._headers: dict[str, list[str]] = {}
        for key, value in (headers or {}).items():
            self._headers[key.lower()] = [value] if isinstance(value, str) else list(value)

    @classmethod
    def from_raw(cls, raw: Iterable[Tuple[bytes, bytes]]) -> "Headers":
        headers = cls()
        for key, value in raw:
            headers.add(key.decode(HEADERS_ENCODING), value.decode(HEADERS_ENCODING))
        return headers

    def raw(self) -> RawHeaders:
        return [
            (key.encode(HEADERS_ENCODING), value.encode(HEADERS_ENCODING))
            for key, values in self._headers.items()
            for value in values
        ]

    def get_list(self, key: str) -> Optional[List[str]]:
        return self._headers.get(key.lower(), None)

    def add(self, key: str, value: str) -> None:
        self._headers.setdefault(key.lower(), []).append(value)

    def extend(self, other: Union["Headers", "HeaderSnapshot"]) -> None:
        """Append every value of `other`, keeping the values already present."""
        for key in other:
            values = other.get_list(key) or []
            self._headers.setdefault(key.lower(), []).extend(values)

    def copy(self) -> "Headers":
        clone = Headers()
        clone._headers = {key: values[:] for key, values in self._headers.items()}
        return clone

    def __getitem__(self, key: str) -> str:
        return ", ".join(self._headers[key.lower()])

    def __setitem__(self, key: str, value: str) -> None:
        self._headers[key.lower()] = [value]

    def __delitem__(self, key: str) -> None:
        del self._headers[key.lower()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return f"Headers({self._headers!r})"

    def __eq__(self, other_headers: Any) -> bool:
        return isinstance(other_headers, Headers) and self._headers == other_headers._headers


class HeaderSnapshot(Mapping[str, Tuple[str, ...]]):
    """
    Frozen copy of a `Headers` object.

    The snapshot owns tuples of values, so mutating the headers it was taken
    from (or the headers it is later merged into) never reaches it.
    """

    __slots__ = ("_headers",)

    def __init__(self, headers: Mapping[str, Tuple[str, ...]]) -> None:
        self._headers = {key.lower(): tuple(values) for key, values in headers.items()}

    @classmethod
    def of(cls, headers: Headers) -> "HeaderSnapshot":
        return cls({key: tuple(headers.get_list(key) or ()) for key in headers})

    def get_list(self, key: str) -> Optional[List[str]]:
        values = self._headers.get(key.lower())
        return list(values) if values is not None else None

    def first(self, key: str) -> Optional[str]:
        values = self._headers.get(key.lower())
        return values[0] if values else None

    def raw(self) -> RawHeaders:
        return [
            (key.encode(HEADERS_ENCODING), value.encode(HEADERS_ENCODING))
            for key, values in self._headers.items()
            for value in values
        ]

    def __getitem__(self, key: str) -> Tuple[str, ...]:
        return self._headers[key.lower()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def __repr__(self) -> str:
        return f"HeaderSnapshot({self._headers!r})"

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, HeaderSnapshot) and self._headers == other._headers

    def __hash__(self) -> int:
        return hash(frozenset(self._headers.items()))
