"""Object path and URL helpers."""

import posixpath
import urllib.parse
from collections.abc import Iterable


def join_path(*parts: str) -> str:
    """Join path segments posix-style into an absolute, normalized path.

    Empty segments are skipped, repeated slashes collapse, ``.``/``..`` are
    resolved the way a normal path join does, and a trailing slash on the
    last segment is kept (``folder/`` keys stay folders).

    Examples:
        >>> join_path("/files", "bucket", "a/b.txt")
        '/files/bucket/a/b.txt'
        >>> join_path("", "bucket", "/dir/")
        '/bucket/dir/'
    """
    joined = "/".join(part for part in parts if part)
    path = posixpath.normpath("/" + joined)
    # normpath keeps exactly two leading slashes
    if path.startswith("//"):
        path = "/" + path.lstrip("/")
    if joined.endswith("/") and path != "/":
        path += "/"
    return path


def quote_path(path: str) -> str:
    """Percent-encode a URL path, leaving ``/`` and unreserved characters as-is."""
    return urllib.parse.quote(path, safe="/-_.~")


def quote_component(value: str) -> str:
    """Percent-encode a value the way a URI component is encoded.

    Letters, digits and ``-_.!~*'()`` are left untouched.
    """
    return urllib.parse.quote(value, safe="-_.!~*'()")


def build_url(origin: str, path: str, params: Iterable[tuple[str, str]] = ()) -> str:
    """Assemble ``origin + quoted path [+ ?query]``.

    Args:
        origin: ``scheme://host[:port]`` with no trailing slash.
        path: Absolute, unencoded path.
        params: Query parameters appended in the given order.

    Returns:
        The full URL string.
    """
    url = origin + quote_path(path)
    query = urllib.parse.urlencode(list(params))
    if query:
        url += "?" + query
    return url
