"""Server capability negotiation for object copy.

Before every copy the client asks the server for its API version with a
HEAD on ``<endpoint>/apiversion``. Servers reporting a major version above 1
accept ``bucket/key`` copy sources (cross-bucket copy); older ones only
accept a bare ``key`` from the destination bucket. Servers that predate the
probe answer 405, which is treated as "same bucket only".
"""

import enum
import logging

from fssclient.config import ClientConfiguration
from fssclient.errors import ServiceError
from fssclient.paths import build_url, join_path
from fssclient.request import DEFAULT_ACCEPT, METHOD_HEAD, SignedRequest
from fssclient.transport import StreamingTransport

logger = logging.getLogger(__name__)

VERSION_PATH = "apiversion"
SERVER_VERSION_HEADER = "x-fss-server-version"
PROBE_ABSENT_STATUS = 405


class CopyCapability(enum.Enum):
    """Copy-source addressing the server supports."""

    CROSS_BUCKET = "cross-bucket"
    SAME_BUCKET_ONLY = "same-bucket-only"


def parse_major_version(value: str | None) -> int | None:
    """Return the major component of a ``major[.minor[...]]`` version string.

    Examples:
        >>> parse_major_version("2.0")
        2
        >>> parse_major_version("garbage") is None
        True
    """
    if not value:
        return None
    head = value.strip().lstrip("vV").split(".", 1)[0]
    try:
        return int(head)
    except ValueError:
        return None


def capability_for_version(version: str | None) -> CopyCapability:
    """Map a reported server version to the copy addressing it supports."""
    major = parse_major_version(version)
    if major is not None and major > 1:
        return CopyCapability.CROSS_BUCKET
    return CopyCapability.SAME_BUCKET_ONLY


def build_probe_request(config: ClientConfiguration) -> SignedRequest:
    """Build the unsigned HEAD request against the version-discovery path."""
    url = build_url(config.endpoint, join_path(config.path_prefix, VERSION_PATH))
    return SignedRequest(
        method=METHOD_HEAD,
        url=url,
        headers={"accept": DEFAULT_ACCEPT},
        key=VERSION_PATH,
    )


async def probe_copy_capability(
    transport: StreamingTransport, config: ClientConfiguration
) -> CopyCapability:
    """Ask the server which copy-source syntax it accepts.

    Args:
        transport: Transport used to send the probe.
        config: Resolved client configuration.

    Returns:
        ``CROSS_BUCKET`` when the server reports a major version above 1,
        otherwise ``SAME_BUCKET_ONLY``.

    Raises:
        ServiceError: If the probe fails with any status other than 405.
        httpx.HTTPError: If the probe cannot reach the server.
    """
    try:
        response = await transport.send(
            build_probe_request(config), expected_statuses={PROBE_ABSENT_STATUS}
        )
    except ServiceError as exc:
        if exc.status == PROBE_ABSENT_STATUS:
            logger.debug("Server has no version endpoint, using same-bucket copy")
            return CopyCapability.SAME_BUCKET_ONLY
        raise

    version = response.headers.get(SERVER_VERSION_HEADER)
    capability = capability_for_version(version)
    logger.debug("Server version %r supports %s copy", version, capability.value)
    return capability


def copy_source(
    capability: CopyCapability, from_key: str, source_bucket: str, own_bucket: str
) -> str:
    """Render the ``x-fss-copy-source`` value for ``from_key``.

    Args:
        capability: Result of :func:`probe_copy_capability`.
        from_key: Source object key.
        source_bucket: Bucket the source lives in.
        own_bucket: The client's configured bucket.

    Returns:
        ``source_bucket/from_key`` for cross-bucket capable servers, else
        ``from_key``.
    """
    if capability is CopyCapability.CROSS_BUCKET:
        return f"{source_bucket}/{from_key.lstrip('/')}"
    if source_bucket != own_bucket:
        logger.warning(
            "Server does not support cross-bucket copy, copying %r from bucket %r instead of %r",
            from_key,
            own_bucket,
            source_bucket,
        )
    return from_key
