from __future__ import annotations

import calendar
import posixpath
import typing as tp
from email.utils import parsedate_tz

HEADERS_ENCODING = "iso-8859-1"


def parse_date(date: str) -> tp.Optional[int]:
    parsed = parsedate_tz(date)
    if parsed is None:
        return None
    try:
        timestamp = calendar.timegm(parsed[:6])
    except (ValueError, OverflowError):
        return None
    if parsed[9]:
        timestamp -= parsed[9]
    return timestamp


def clean_path(path: str) -> str:
    """
    Return the shortest lexically equivalent form of a URL path.

    Repeated slashes are collapsed, `.` elements are dropped and `..`
    elements remove the preceding element. The result is always rooted,
    `..` never climbs above the root, and an empty path becomes `/`.

    Examples:
        >>> clean_path("/a//b/./c/../d/")
        '/a/b/d'
        >>> clean_path("")
        '/'
        >>> clean_path("/../x")
        '/x'
    """
    try:
        cleaned = posixpath.normpath("/" + path)
    except (TypeError, ValueError):
        return path
    # normpath keeps a leading "//" as POSIX allows it to be special
    if cleaned.startswith("//"):
        cleaned = "/" + cleaned.lstrip("/")
    return cleaned
