"""Asynchronous client for the FSS object storage service."""

__version__ = "2.1.0"

from fssclient.client import FSSClient, ObjectMeta  # noqa: E402
from fssclient.config import ClientConfiguration, load_config, resolve_config  # noqa: E402
from fssclient.errors import (  # noqa: E402
    ConfigurationError,
    FSSError,
    HTTPClientError,
    HTTPServerError,
    InvalidArgument,
    InvalidPayloadError,
    ServiceError,
    ValidationError,
)
from fssclient.negotiation import CopyCapability  # noqa: E402
from fssclient.presign import SignatureUrlOptions  # noqa: E402
from fssclient.transport import ObjectStream  # noqa: E402

__all__ = [
    "ClientConfiguration",
    "ConfigurationError",
    "CopyCapability",
    "FSSClient",
    "FSSError",
    "HTTPClientError",
    "HTTPServerError",
    "InvalidArgument",
    "InvalidPayloadError",
    "ObjectMeta",
    "ObjectStream",
    "ServiceError",
    "SignatureUrlOptions",
    "ValidationError",
    "load_config",
    "resolve_config",
]
