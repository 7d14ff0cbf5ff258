"""Signed request construction for FSS object operations."""

import posixpath
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from email.utils import formatdate
from types import MappingProxyType
from typing import Any

from fssclient.auth import META_HEADER_PREFIX, FSSSigner, SignOptions, canonical_resource_path
from fssclient.config import ClientConfiguration
from fssclient.paths import build_url, join_path, quote_component
from fssclient.validation import validate_object_key

DEFAULT_ACCEPT = "application/xml,*/*"

METHOD_GET = "GET"
METHOD_PUT = "PUT"
METHOD_HEAD = "HEAD"
METHOD_DELETE = "DELETE"


@dataclass(frozen=True)
class SignedRequest:
    """A fully addressed, authenticated request. Never mutated after creation.

    Attributes:
        method: HTTP method.
        url: Target URL including subresource query parameters.
        headers: Read-only header mapping (lower-case names).
        key: The object key the request addresses.
    """

    method: str
    url: str
    headers: Mapping[str, str]
    key: str


def _lower_keys(values: Mapping[str, Any] | None) -> dict[str, str]:
    """Lower-case mapping keys and stringify values, dropping ``None`` values."""
    if not values:
        return {}
    return {str(name).lower(): str(value) for name, value in values.items() if value is not None}


def http_date(timestamp: float) -> str:
    """Format a Unix timestamp as an RFC 7231 date (``Mon, 19 Oct 2026 06:00:00 GMT``)."""
    return formatdate(timestamp, usegmt=True)


class RequestBuilder:
    """Builds :class:`SignedRequest` values for one client configuration.

    Attributes:
        config: The resolved client configuration.
        signer: Signer holding the configuration's credentials.
    """

    def __init__(
        self, config: ClientConfiguration, clock: Callable[[], float] = time.time
    ) -> None:
        self.config = config
        self.signer = FSSSigner(config.access_key_id, config.access_key_secret)
        self._clock = clock

    def resource(self, key: str) -> str:
        """Bucket-scoped resource path that is signed for ``key``."""
        return canonical_resource_path(self.config.bucket_name, key)

    def object_path(self, key: str, public: bool = False) -> str:
        """URL path for ``key``: prefix + bucket + key."""
        prefix = self.config.public_path_prefix if public else self.config.path_prefix
        return join_path(prefix, self.config.bucket_name, key)

    def build(
        self,
        method: str,
        key: str,
        headers: Mapping[str, Any] | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> SignedRequest:
        """Build a signed request for ``method`` on ``key``.

        Args:
            method: HTTP method.
            key: Object key within the configured bucket.
            headers: Extra request headers. A ``date`` header is added unless
                one is given.
            metadata: Custom ``x-fss-*`` headers. Names are lower-cased and
                both signed and sent.

        Returns:
            The signed request.

        Raises:
            InvalidArgument: If ``key`` is empty or too long.
        """
        validate_object_key(key)

        method = method.upper()
        request_headers = _lower_keys(headers)
        request_headers.setdefault("date", http_date(self._clock()))
        user_metadata = _lower_keys(metadata)
        request_headers.update(user_metadata)

        result = self.signer.sign(
            self.resource(key),
            SignOptions(method=method, headers=request_headers, metadata=user_metadata),
        )
        request_headers["authorization"] = self.signer.authorization(result.signature)

        url = build_url(
            self.config.endpoint, self.object_path(key), result.sub_resource.items()
        )
        return SignedRequest(
            method=method,
            url=url,
            headers=MappingProxyType({"accept": DEFAULT_ACCEPT, **request_headers}),
            key=key,
        )


def build_upload_headers(
    key: str,
    file_name: str | None,
    content_type: str | None,
    content_length: int | None,
) -> dict[str, str]:
    """Headers describing an uploaded object.

    ``content-disposition`` carries the URI-component-encoded basename of
    ``file_name`` (or of ``key``). ``content-length`` is only set for payloads
    whose size is known up front.
    """
    headers: dict[str, str] = {}
    if content_type:
        headers["content-type"] = content_type
    raw_name = posixpath.basename(file_name or key)
    if raw_name:
        headers["content-disposition"] = quote_component(raw_name)
    if content_length is not None:
        headers["content-length"] = str(content_length)
    return headers


def build_user_metadata(metadata: Mapping[str, Any] | None) -> dict[str, str]:
    """Prefix user metadata names with ``x-fss-meta-``."""
    if not metadata:
        return {}
    return {META_HEADER_PREFIX + str(name).lower(): str(value) for name, value in metadata.items()}
