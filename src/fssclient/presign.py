"""Presigned (query-string authenticated) object URLs."""

import math
from collections.abc import Mapping
from dataclasses import dataclass, field

from fssclient.auth import SignOptions
from fssclient.paths import build_url
from fssclient.request import METHOD_GET, RequestBuilder
from fssclient.validation import validate_expires, validate_object_key

DEFAULT_EXPIRES = 1800  # 30 minutes in seconds

ACCESS_KEY_PARAM = "FSSAccessKeyId"
EXPIRES_PARAM = "Expires"
SIGNATURE_PARAM = "Signature"


@dataclass(frozen=True)
class SignatureUrlOptions:
    """Options for :func:`presign_url`.

    Attributes:
        method: HTTP method the URL will be used with.
        expires: Lifetime in seconds from now.
        headers: Headers the URL's user will send (``content-type``,
            ``content-md5``); they are signed but not embedded in the URL.
        metadata: ``x-fss-*`` headers the URL's user will send.
        process: Processing directive, added as ``x-fss-process``.
        response: Response-header overrides, added as ``response-<name>``.
    """

    method: str = METHOD_GET
    expires: int = DEFAULT_EXPIRES
    headers: Mapping[str, str] = field(default_factory=dict)
    metadata: Mapping[str, str] = field(default_factory=dict)
    process: str | None = None
    response: Mapping[str, str] | None = None


def presign_url(
    builder: RequestBuilder, key: str, options: SignatureUrlOptions, now: float
) -> str:
    """Build a time-limited, query-signed URL for ``key``.

    The URL always points at the public endpoint. No network access happens.

    Args:
        builder: Request builder holding the configuration and credentials.
        key: Object key.
        options: Method, lifetime and signed extras.
        now: Current Unix time in seconds.

    Returns:
        The object URL with ``FSSAccessKeyId``, ``Expires``, ``Signature`` and
        any subresource parameters in its query string.

    Raises:
        InvalidArgument: If ``key`` is empty or ``expires`` is not positive.
    """
    validate_object_key(key)
    # whole seconds, halves rounded up
    expires_at = math.floor(now + 0.5) + validate_expires(options.expires)
    metadata = {name.lower(): str(value) for name, value in options.metadata.items()}
    result = builder.signer.sign(
        builder.resource(key),
        SignOptions(
            method=options.method,
            headers={name.lower(): value for name, value in options.headers.items()},
            metadata=metadata,
            expires=expires_at,
            process=options.process,
            response=options.response,
        ),
    )

    params = [
        (ACCESS_KEY_PARAM, builder.config.access_key_id),
        (EXPIRES_PARAM, str(expires_at)),
        (SIGNATURE_PARAM, result.signature),
    ]
    params.extend(result.sub_resource.items())
    return build_url(
        builder.config.public_endpoint,
        builder.object_path(key, public=True),
        params,
    )
