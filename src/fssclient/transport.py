"""Streaming HTTP transport for signed FSS requests.

Responses are handled in two phases:

1. Send the request and wait for the status line and headers only.
2. On a 2xx status hand the live body back to the caller untouched; on any
   other status buffer the (small, bounded) error body, decode it and raise
   a classified :class:`~fssclient.errors.ServiceError`.

A successful download is therefore never buffered, and a failed one never
reaches the caller as a stream.
"""

import logging
import time
from collections.abc import AsyncIterator, Collection, Iterator
from contextlib import contextmanager

import httpx

from fssclient import metrics
from fssclient.errors import FSSError, ServiceError, describe_operation, service_error
from fssclient.request import SignedRequest
from fssclient.validation import Payload
from fssclient.xml_utils import parse_error_body

logger = logging.getLogger(__name__)

# Error bodies larger than this are truncated before decoding
MAX_ERROR_BODY = 64 * 1024


def classify_error(response: httpx.Response, body: bytes) -> ServiceError:
    """Turn a non-2xx response and its buffered body into a ServiceError.

    Args:
        response: The failed response (status and headers are used).
        body: The buffered, possibly truncated, response body.

    Returns:
        An HTTPClientError (status < 500) or HTTPServerError, carrying
        ``code``/``description`` when the body was a decodable error document.
    """
    fields = parse_error_body(response.headers.get("content-type", ""), body)
    return service_error(
        response.status_code,
        code=fields.get("Code"),
        description=fields.get("Message"),
        fields=fields,
    )


async def _read_error_body(response: httpx.Response) -> bytes:
    """Buffer at most ``MAX_ERROR_BODY`` bytes of a failed response."""
    chunks: list[bytes] = []
    size = 0
    async for chunk in response.aiter_bytes():
        chunks.append(chunk)
        size += len(chunk)
        if size >= MAX_ERROR_BODY:
            break
    return b"".join(chunks)[:MAX_ERROR_BODY]


class ObjectStream:
    """Live, single-pass body of a successful download.

    Iterate with ``async for`` to receive chunks as they arrive. The
    underlying connection is released when iteration finishes, fails, or
    when :meth:`aclose` is called; use ``async with`` to guarantee the latter
    if the body may be abandoned part-way.

    Attributes:
        key: The object key being downloaded.
    """

    def __init__(self, response: httpx.Response, key: str) -> None:
        self._response = response
        self.key = key

    @property
    def status(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> dict[str, str]:
        return dict(self._response.headers)

    @property
    def closed(self) -> bool:
        return self._response.is_closed

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self.iter_bytes()

    async def iter_bytes(self, chunk_size: int | None = None) -> AsyncIterator[bytes]:
        """Yield body chunks. Transport errors part-way through propagate."""
        try:
            async for chunk in self._response.aiter_bytes(chunk_size):
                yield chunk
        except httpx.HTTPError as exc:
            exc.add_note(describe_operation("download", self.key))
            raise
        finally:
            await self._response.aclose()

    async def read(self) -> bytes:
        """Consume the whole remaining body into memory."""
        return b"".join([chunk async for chunk in self.iter_bytes()])

    async def aclose(self) -> None:
        """Abort the transfer and release the connection."""
        await self._response.aclose()

    async def __aenter__(self) -> "ObjectStream":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


class StreamingTransport:
    """Sends :class:`SignedRequest` values over an ``httpx.AsyncClient``.

    Attributes:
        http: The HTTP client used for every request.
    """

    def __init__(self, http: httpx.AsyncClient) -> None:
        self.http = http

    async def open(
        self,
        request: SignedRequest,
        content: Payload | None = None,
        expected_statuses: Collection[int] = (),
    ) -> httpx.Response:
        """Send ``request`` and return once status and headers are known.

        Args:
            request: The signed request.
            content: Optional request body.
            expected_statuses: Non-2xx statuses the caller handles itself.
                They are still raised, but logged at DEBUG instead of INFO.

        Returns:
            A 2xx response whose body has not been read yet. The caller owns
            it and must read or close it.

        Raises:
            ServiceError: On any non-2xx status; the response is closed.
            httpx.HTTPError: On connection, DNS, TLS or timeout failures.
        """
        http_request = self.http.build_request(
            request.method, request.url, headers=dict(request.headers), content=content
        )
        response = await self.http.send(http_request, stream=True)
        if response.is_success:
            return response

        try:
            body = await _read_error_body(response)
        finally:
            await response.aclose()
        error = classify_error(response, body)
        level = logging.DEBUG if error.status in expected_statuses else logging.INFO
        logger.log(
            level,
            "FSS request failed: %s",
            error.message,
            extra={"method": request.method, "key": request.key, "status": error.status},
        )
        raise error

    async def stream(self, request: SignedRequest) -> ObjectStream:
        """Send ``request`` and return its body as a live stream."""
        response = await self.open(request)
        return ObjectStream(response, request.key)

    async def send(
        self,
        request: SignedRequest,
        content: Payload | None = None,
        expected_statuses: Collection[int] = (),
    ) -> httpx.Response:
        """Send ``request`` and buffer the (expected small) success body.

        See :meth:`open` for ``expected_statuses``.
        """
        response = await self.open(request, content, expected_statuses)
        try:
            await response.aread()
        finally:
            await response.aclose()
        return response


@contextmanager
def operation_context(operation: str, *keys: str) -> Iterator[None]:
    """Annotate errors with the operation and key(s), and log/count the outcome.

    FSS errors get a ``--> [operation] [key]`` suffix on their message;
    transport errors keep their type and get the same text as a note.
    """
    started = time.perf_counter()
    try:
        yield
    except FSSError as exc:
        exc.with_context(operation, *keys)
        metrics.record_operation(operation, "error")
        raise
    except httpx.HTTPError as exc:
        exc.add_note(describe_operation(operation, *keys))
        metrics.record_operation(operation, "error")
        logger.info(
            "FSS transport error: %s",
            exc,
            extra={"operation": operation, "key": ",".join(keys)},
        )
        raise
    metrics.record_operation(operation, "success")
    logger.debug(
        "FSS %s completed",
        operation,
        extra={
            "operation": operation,
            "key": ",".join(keys),
            "duration_ms": round((time.perf_counter() - started) * 1000, 2),
        },
    )
