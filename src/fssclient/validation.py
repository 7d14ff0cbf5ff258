"""Local argument validation for FSS client calls.

Everything here runs before any network I/O and raises a
``ValidationError`` subclass on invalid input.
"""

import io
import itertools
from collections.abc import AsyncIterable, AsyncIterator, Iterable, Iterator, Mapping, Sequence
from typing import Any

from fssclient.errors import InvalidArgument, InvalidPayloadError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_MAX_KEY_BYTES = 1024
_READ_CHUNK_SIZE = 64 * 1024
_BYTE_TYPES = (bytes, bytearray, memoryview)

Payload = bytes | AsyncIterable[bytes]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_object_key(key: str) -> None:
    """Validate an object key.

    Args:
        key: The object key string.

    Raises:
        InvalidArgument: If the key is not a non-empty string of at most
            1024 bytes when UTF-8 encoded.
    """
    if not isinstance(key, str) or not key:
        raise InvalidArgument("Object key must be a non-empty string")
    if len(key.encode("utf-8")) > _MAX_KEY_BYTES:
        raise InvalidArgument(f"Object key is longer than {_MAX_KEY_BYTES} bytes")


async def _iterate_file(fh: Any) -> AsyncIterator[bytes]:
    """Read a binary file-like object in fixed-size chunks."""
    while True:
        chunk = fh.read(_READ_CHUNK_SIZE)
        if not chunk:
            return
        yield chunk


async def _iterate_sync(chunks: Iterable[Any], payload: object) -> AsyncIterator[bytes]:
    """Adapt a synchronous iterable of byte chunks for an async transport."""
    for chunk in chunks:
        if not isinstance(chunk, _BYTE_TYPES):
            raise InvalidPayloadError(payload)
        yield bytes(chunk)


def _check_iterable(data: Iterable[Any]) -> Iterable[Any]:
    """Type-check the chunks of a sync iterable as far as possible without I/O.

    Sequences are checked in full. One-shot iterators are checked on their
    first chunk, which is pushed back in front of the remaining ones; later
    chunks are checked while the body is streamed.
    """
    if isinstance(data, Sequence):
        if not all(isinstance(chunk, _BYTE_TYPES) for chunk in data):
            raise InvalidPayloadError(data)
        return data

    iterator: Iterator[Any] = iter(data)
    for first in iterator:
        if not isinstance(first, _BYTE_TYPES):
            raise InvalidPayloadError(data)
        return itertools.chain([first], iterator)
    return ()


def prepare_payload(data: object) -> tuple[Payload, int | None]:
    """Classify an upload payload.

    Accepted payloads are fully materialized byte buffers (``bytes``,
    ``bytearray``, ``memoryview``) and readable byte sequences: async
    iterables of bytes, binary file-like objects and other iterables of
    bytes. Text, numbers, ``None`` and mappings are rejected, as are sync
    iterables whose (first) chunk is not bytes.

    Args:
        data: The object passed to ``put``.

    Returns:
        ``(content, length)`` where ``length`` is the byte size for buffers and
        ``None`` for streams (sent with chunked transfer encoding).

    Raises:
        InvalidPayloadError: If ``data`` is not an accepted payload type.
    """
    if isinstance(data, _BYTE_TYPES):
        content = bytes(data)
        return content, len(content)
    if isinstance(data, (str, Mapping, io.TextIOBase)) or data is None:
        raise InvalidPayloadError(data)
    if isinstance(data, AsyncIterable):
        return data, None
    if callable(getattr(data, "read", None)):
        return _iterate_file(data), None
    if isinstance(data, Iterable):
        return _iterate_sync(_check_iterable(data), data), None
    raise InvalidPayloadError(data)
    if isinstance(data, AsyncIterable):
        return data, None
    if callable(getattr(data, "read", None)):
        return _iterate_file(data), None
    if isinstance(data, Iterable):
        return _iterate_sync(data, data), None
    raise InvalidPayloadError(data)


def validate_expires(expires: object) -> int:
    """Validate a presigned URL lifetime in seconds.

    Raises:
        InvalidArgument: If ``expires`` is not a positive integer.
    """
    if isinstance(expires, bool) or not isinstance(expires, int):
        raise InvalidArgument(f"expires must be an integer number of seconds, got {expires!r}")
    if expires <= 0:
        raise InvalidArgument(f"expires must be positive, got {expires}")
    return expires
