"""FSS request signing.

Implements the FSS header signature (``authorization: FSS <id>:<signature>``)
and the query-string signature used by presigned URLs. Both sign the same
string::

    METHOD
    content-md5
    content-type
    date | expires
    x-fss-a:value        (one line per x-fss-* header, sorted by name)
    x-fss-b:value
    /bucket/key?sub=resource&...

The signature is ``base64(HMAC-SHA1(access_key_secret, string_to_sign))``.
Line order and the lexicographic sorts are part of the wire protocol.
"""

import base64
import hashlib
import hmac
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from fssclient.paths import join_path

logger = logging.getLogger(__name__)

# Constants
AUTH_SCHEME = "FSS"
FSS_HEADER_PREFIX = "x-fss-"
META_HEADER_PREFIX = "x-fss-meta-"
PROCESS_SUBRESOURCE = "x-fss-process"
RESPONSE_SUBRESOURCE_PREFIX = "response-"


@dataclass(frozen=True)
class SignOptions:
    """Inputs to a single signature computation.

    Attributes:
        method: HTTP method; upper-cased when signed.
        headers: Request headers; ``content-md5``, ``content-type`` and ``date``
            are read from here.
        metadata: Custom headers; only ``x-fss-*`` names are signed.
        expires: Absolute Unix timestamp. When set it replaces ``date``.
        process: Image/processing directive, signed as ``x-fss-process``.
        response: Response-header overrides, signed as ``response-<name>``.
    """

    method: str
    headers: Mapping[str, str] = field(default_factory=dict)
    metadata: Mapping[str, str] = field(default_factory=dict)
    expires: int | None = None
    process: str | None = None
    response: Mapping[str, str] | None = None


@dataclass(frozen=True)
class SignResult:
    """A computed signature and the subresources it covers."""

    signature: str
    sub_resource: dict[str, str]


def _header(headers: Mapping[str, str], name: str) -> str:
    """Case-insensitive header lookup returning ``""`` when absent."""
    for key, value in headers.items():
        if key.lower() == name:
            return "" if value is None else str(value)
    return ""


def canonical_resource_path(bucket: str, key: str) -> str:
    """Return the bucket-scoped resource path ``/<bucket>/<key>``."""
    return join_path(bucket, key)


def build_sub_resource(
    process: str | None = None, response: Mapping[str, str] | None = None
) -> dict[str, str]:
    """Collect the protocol subresources of a request.

    Args:
        process: Optional processing directive.
        response: Optional response-header overrides, e.g.
            ``{"Content-Type": "text/plain"}``.

    Returns:
        A mapping such as ``{"x-fss-process": ..., "response-content-type": ...}``.
    """
    sub_resource: dict[str, str] = {}
    if process:
        sub_resource[PROCESS_SUBRESOURCE] = process
    if response:
        for name, value in response.items():
            sub_resource[RESPONSE_SUBRESOURCE_PREFIX + name.lower()] = str(value)
    return sub_resource


def build_canonicalized_resource(resource: str, sub_resource: Mapping[str, str]) -> str:
    """Append sorted ``key=value`` subresource pairs to a resource path.

    Args:
        resource: The bucket-scoped path (``/bucket/key``).
        sub_resource: Subresource parameters; values are not URL-encoded.

    Returns:
        ``resource`` alone, or ``resource?k1=v1&k2=v2`` with keys sorted.
    """
    pairs = [f"{name}={sub_resource[name]}" for name in sorted(sub_resource)]
    if pairs:
        return resource + "?" + "&".join(pairs)
    return resource


def build_string_to_sign(
    resource: str, options: SignOptions, sub_resource: Mapping[str, str]
) -> str:
    """Assemble the newline-joined string covered by the signature.

    Args:
        resource: The bucket-scoped path (``/bucket/key``).
        options: Method, headers, metadata and optional expiry.
        sub_resource: Subresources from :func:`build_sub_resource`.

    Returns:
        The string to sign.
    """
    parts = [
        options.method.upper(),
        _header(options.headers, "content-md5"),
        _header(options.headers, "content-type"),
    ]
    if options.expires is not None:
        parts.append(str(int(options.expires)))
    else:
        parts.append(_header(options.headers, "date"))

    for name in sorted(options.metadata):
        if name.startswith(FSS_HEADER_PREFIX):
            parts.append(f"{name}:{options.metadata[name]}")

    parts.append(build_canonicalized_resource(resource, sub_resource))
    return "\n".join(parts)


def compute_signature(secret: str, string_to_sign: str) -> str:
    """Compute ``base64(HMAC-SHA1(secret, string_to_sign))``."""
    digest = hmac.new(
        secret.encode("utf-8"), string_to_sign.encode("utf-8"), hashlib.sha1
    ).digest()
    return base64.b64encode(digest).decode("ascii")


def sign(secret: str, resource: str, options: SignOptions) -> SignResult:
    """Sign a request.

    Pure: the same inputs always give the same signature. The request date
    or expiry is taken from ``options``; no clock is read here.

    Args:
        secret: The access key secret.
        resource: The bucket-scoped path (``/bucket/key``).
        options: Signing inputs.

    Returns:
        The signature and the subresources it covers.
    """
    sub_resource = build_sub_resource(options.process, options.response)
    string_to_sign = build_string_to_sign(resource, options, sub_resource)
    logger.debug("String to sign: %r", string_to_sign)
    return SignResult(
        signature=compute_signature(secret, string_to_sign),
        sub_resource=sub_resource,
    )


class FSSSigner:
    """Signs requests with one set of FSS credentials.

    Attributes:
        access_key_id: The access key id placed in the authorization header.
    """

    def __init__(self, access_key_id: str, access_key_secret: str) -> None:
        self.access_key_id = access_key_id
        self._secret = access_key_secret

    def sign(self, resource: str, options: SignOptions) -> SignResult:
        """Sign ``resource`` with this signer's secret. See :func:`sign`."""
        return sign(self._secret, resource, options)

    def authorization(self, signature: str) -> str:
        """Render the ``authorization`` header value for ``signature``."""
        return f"{AUTH_SCHEME} {self.access_key_id}:{signature}"
