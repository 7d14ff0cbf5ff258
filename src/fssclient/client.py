"""Public asynchronous client for the FSS object storage service."""

import logging
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any

import httpx

from fssclient import __version__, metrics
from fssclient.auth import META_HEADER_PREFIX
from fssclient.config import ClientConfiguration, resolve_config
from fssclient.negotiation import copy_source, probe_copy_capability
from fssclient.paths import build_url, join_path
from fssclient.presign import SignatureUrlOptions, presign_url
from fssclient.request import (
    METHOD_DELETE,
    METHOD_GET,
    METHOD_HEAD,
    METHOD_PUT,
    RequestBuilder,
    build_upload_headers,
    build_user_metadata,
)
from fssclient.transport import ObjectStream, StreamingTransport, operation_context
from fssclient.validation import prepare_payload, validate_object_key

logger = logging.getLogger(__name__)

COPY_SOURCE_HEADER = "x-fss-copy-source"
CLIENT_VERSION_HEADER = "x-fss-client-version"


@dataclass(frozen=True)
class ObjectMeta:
    """Result of :meth:`FSSClient.head`.

    Attributes:
        headers: All response headers (lower-case names).
        meta: User metadata with the ``x-fss-meta-`` prefix stripped.
        status: HTTP status of the HEAD response.
    """

    headers: dict[str, str]
    meta: dict[str, str]
    status: int


def extract_user_metadata(headers: Mapping[str, str]) -> dict[str, str]:
    """Collect ``x-fss-meta-*`` headers with the prefix removed."""
    return {
        name[len(META_HEADER_PREFIX):]: value
        for name, value in headers.items()
        if name.lower().startswith(META_HEADER_PREFIX)
    }


class FSSClient:
    """Client for one FSS bucket.

    The configuration is resolved once here; a malformed configuration raises
    :class:`~fssclient.errors.ConfigurationError` immediately. Every other
    method issues at most one request (``copy`` issues two) and never
    retries.

    Example::

        async with FSSClient({"server": "fss.example.com", ...}) as client:
            await client.put("a/b.txt", None, b"hello", {}, "text/plain")
            async with await client.get("a/b.txt") as stream:
                async for chunk in stream:
                    ...

    Attributes:
        config: The resolved configuration.
    """

    def __init__(
        self,
        config: Mapping[str, Any] | ClientConfiguration,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the client.

        Args:
            config: Either configuration schema, or an already resolved
                ClientConfiguration.
            http_client: HTTP client to send requests with. When omitted the
                client creates (and owns) one.
            clock: Source of the current Unix time, used for request dates
                and presigned URL expiry.
        """
        self.config = resolve_config(config)
        self._clock = clock
        self._builder = RequestBuilder(self.config, clock=clock)
        self._owns_http = http_client is None
        self._http = http_client if http_client is not None else httpx.AsyncClient()
        self._transport = StreamingTransport(self._http)

    @property
    def endpoint(self) -> httpx.URL:
        """Base URL (origin + path prefix) requests are sent to."""
        return httpx.URL(self.config.base_url)

    async def aclose(self) -> None:
        """Close the HTTP client if this instance created it."""
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "FSSClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    # -- Object operations -----------------------------------------------------

    async def get(self, key: str) -> ObjectStream:
        """Download an object as a live byte stream.

        The body is not buffered: chunks are yielded as they arrive, and a
        transport failure part-way through is raised from the iteration.

        Args:
            key: Object key.

        Returns:
            A single-pass :class:`ObjectStream`. Consume it fully or close it.

        Raises:
            HTTPClientError: The service answered with a status below 500.
            HTTPServerError: The service answered with a status of 500 or more.
            httpx.HTTPError: The request could not be sent.
        """
        with operation_context("download", key):
            request = self._builder.build(METHOD_GET, key)
            return await self._transport.stream(request)

    async def put(
        self,
        key: str,
        file_name: str | None,
        data: Any,
        metadata: Mapping[str, Any] | None = None,
        content_type: str | None = None,
    ) -> None:
        """Upload an object.

        Args:
            key: Destination object key.
            file_name: Original file name; its basename becomes the
                ``content-disposition`` value (the key's basename is used
                when omitted).
            data: ``bytes``/``bytearray``/``memoryview``, or a readable byte
                stream (async iterable, binary file object, iterable of bytes).
            metadata: User metadata, sent as ``x-fss-meta-<name>`` headers.
            content_type: Object content type.

        Raises:
            InvalidPayloadError: ``data`` is of an unsupported type; raised
                before any request is sent.
            ServiceError: The service did not answer with a 2xx status.
            httpx.HTTPError: The request could not be sent.
        """
        with operation_context("upload", key):
            validate_object_key(key)
            content, length = prepare_payload(data)
            request = self._builder.build(
                METHOD_PUT,
                key,
                headers=build_upload_headers(key, file_name, content_type, length),
                metadata=build_user_metadata(metadata),
            )
            await self._transport.send(request, content)
            metrics.record_upload(length)

    async def delete(self, key: str) -> None:
        """Delete an object.

        Raises:
            ServiceError: The service did not answer with a 2xx status.
            httpx.HTTPError: The request could not be sent.
        """
        with operation_context("delete", key):
            # content-length must be explicit on a bodyless DELETE
            request = self._builder.build(METHOD_DELETE, key, headers={"content-length": "0"})
            await self._transport.send(request)

    async def copy(self, to_key: str, from_key: str, bucket: str | None = None) -> None:
        """Copy ``from_key`` to ``to_key`` inside the service.

        The server's API version is probed first (on every call). Servers
        newer than major version 1 copy from ``bucket`` (default: this
        client's bucket); older servers only copy within this client's bucket
        and ``bucket`` is ignored.

        Args:
            to_key: Destination key in this client's bucket.
            from_key: Source key.
            bucket: Source bucket, defaults to this client's bucket.

        Raises:
            ServiceError: The probe failed with a status other than 405, or
                the copy itself failed.
            httpx.HTTPError: A request could not be sent.
        """
        with operation_context("copy", from_key, to_key):
            validate_object_key(from_key)
            capability = await probe_copy_capability(self._transport, self.config)
            source = copy_source(
                capability,
                from_key,
                source_bucket=bucket or self.config.bucket_name,
                own_bucket=self.config.bucket_name,
            )
            logger.debug("Copying %r to %r (%s)", source, to_key, capability.value)
            request = self._builder.build(
                METHOD_PUT,
                to_key,
                metadata={COPY_SOURCE_HEADER: source, CLIENT_VERSION_HEADER: __version__},
            )
            await self._transport.send(request, b"")

    async def get_object_meta(self, key: str) -> dict[str, str]:
        """Return the raw response headers of a HEAD on ``key``."""
        with operation_context("meta", key):
            request = self._builder.build(METHOD_HEAD, key)
            response = await self._transport.send(request)
            return dict(response.headers)

    async def head(self, key: str) -> ObjectMeta:
        """HEAD ``key`` and split its user metadata out of the headers.

        Returns:
            The headers, the ``x-fss-meta-`` metadata with the prefix
            stripped, and the response status.
        """
        with operation_context("head", key):
            request = self._builder.build(METHOD_HEAD, key)
            response = await self._transport.send(request)
            headers = dict(response.headers)
            return ObjectMeta(
                headers=headers,
                meta=extract_user_metadata(headers),
                status=response.status_code,
            )

    # -- URLs (no network access) ----------------------------------------------

    def signature_url(self, key: str, options: SignatureUrlOptions | None = None) -> str:
        """Build a time-limited, query-signed URL on the public endpoint.

        Args:
            key: Object key.
            options: Method, lifetime in seconds (default 1800) and signed
                extras.

        Returns:
            The presigned URL.
        """
        with operation_context("sign-url", key):
            return presign_url(
                self._builder, key, options or SignatureUrlOptions(), now=self._clock()
            )

    def generate_object_url(self, key: str) -> str:
        """Unsigned object URL.

        A configured ``custom_domain`` is bound to the bucket, so its URLs are
        ``<domain>/<key>``; otherwise the public endpoint path
        ``<prefix>/<bucket>/<key>`` is used.
        """
        with operation_context("object-url", key):
            validate_object_key(key)
            domain = self.config.custom_domain
            if domain:
                origin = domain if "://" in domain else f"https://{domain}"
                return build_url(origin.rstrip("/"), join_path(key))
            return build_url(
                self.config.public_endpoint, self._builder.object_path(key, public=True)
            )
