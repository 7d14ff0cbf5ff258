"""Configuration loading, Pydantic models and endpoint resolution for the FSS client.

Two configuration schemas are accepted:

* the current one, discriminated by ``server``::

      {server, useSSL?, port?, prefixPath?, bucketName, accessKeyId,
       accessKeySecret, internal?, customDomain?}

* the deprecated one, discriminated by ``publicEndPoint``::

      {publicEndPoint, privateEndPoint?, internal, bucketName, accessKeyId,
       accessKeySecret, customDomain?}

Either is resolved exactly once into an immutable :class:`ClientConfiguration`.
"""

import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Literal

import httpx
import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from fssclient.errors import ConfigurationError
from fssclient.paths import join_path

logger = logging.getLogger(__name__)

_DEFAULT_PORTS = {"http": 80, "https": 443}


class EndpointHosts(BaseModel):
    """External/internal host pair for the ``server`` field."""

    model_config = ConfigDict(frozen=True)

    external: str = Field(min_length=1)
    internal: str | None = None


class _CredentialsConfig(BaseModel):
    """Fields shared by both configuration schemas."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    bucket_name: str = Field(alias="bucketName", min_length=1)
    access_key_id: str = Field(alias="accessKeyId", min_length=1)
    access_key_secret: str = Field(alias="accessKeySecret", min_length=1)
    internal: bool = False
    custom_domain: str | None = Field(default=None, alias="customDomain")


class ServerEndpointConfig(_CredentialsConfig):
    """Current configuration schema: host, TLS flag, port and path prefix."""

    server: str | EndpointHosts
    use_ssl: bool = Field(default=False, alias="useSSL")
    port: int | None = Field(default=None, ge=1, le=65535)
    prefix_path: str = Field(default="", alias="prefixPath")


class LegacyEndpointConfig(_CredentialsConfig):
    """Deprecated configuration schema: full public/private endpoint URLs."""

    public_endpoint: str = Field(alias="publicEndPoint", min_length=1)
    private_endpoint: str | None = Field(default=None, alias="privateEndPoint")
    prefix: str = ""


class ClientConfiguration(BaseModel):
    """Resolved, immutable client configuration.

    Attributes:
        bucket_name: The bucket every key is addressed in.
        access_key_id: Access key id placed in ``authorization`` headers.
        access_key_secret: Secret used to key the request HMAC.
        endpoint: Origin (``scheme://host[:port]``) requests are sent to.
        path_prefix: Path prefix (``""`` or ``/a/b``) for requests.
        public_endpoint: Origin used for URLs handed to third parties.
        public_path_prefix: Path prefix used for those URLs.
        internal: Whether the client was built for internal network use.
        custom_domain: Optional domain used for unsigned public object URLs.
        schema_name: Which configuration schema was resolved.
    """

    model_config = ConfigDict(frozen=True)

    bucket_name: str
    access_key_id: str
    access_key_secret: str
    endpoint: str
    path_prefix: str = ""
    public_endpoint: str
    public_path_prefix: str = ""
    internal: bool = False
    custom_domain: str | None = None
    schema_name: Literal["server", "legacy"] = "server"

    @property
    def base_url(self) -> str:
        """Request origin plus path prefix."""
        return self.endpoint + self.path_prefix

    @property
    def public_base_url(self) -> str:
        """Public origin plus path prefix."""
        return self.public_endpoint + self.public_path_prefix


class LoggingConfig(BaseModel):
    """Logging configuration for the CLI."""

    level: str = "INFO"
    format: str = "text"


class MetricsConfig(BaseModel):
    """Prometheus metrics configuration."""

    enabled: bool = False


class FSSConfig(BaseModel):
    """Top-level configuration file contents."""

    fss: ClientConfiguration
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    metrics: MetricsConfig = Field(default_factory=MetricsConfig)


# ---------------------------------------------------------------------------
# Endpoint resolution
# ---------------------------------------------------------------------------


def _normalize_prefix(prefix: str | None) -> str:
    """Normalize a path prefix to ``""`` or ``/segment[/segment...]``."""
    if not prefix:
        return ""
    path = join_path(prefix).rstrip("/")
    return path


def _format_origin(scheme: str, host: str, port: int | None) -> str:
    """Render ``scheme://host[:port]``, omitting the scheme's default port."""
    if ":" in host and not host.startswith("["):
        host = f"[{host}]"
    if port is None or port == _DEFAULT_PORTS.get(scheme):
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def _parse_url(value: str, field: str) -> httpx.URL:
    """Parse an endpoint URL, failing fast on anything unusable.

    Raises:
        ConfigurationError: If the URL is malformed or is not an http(s) URL
            with a host.
    """
    try:
        url = httpx.URL(value)
    except (httpx.InvalidURL, TypeError) as exc:
        raise ConfigurationError(f"Invalid {field} URL {value!r}: {exc}") from exc
    if url.scheme not in _DEFAULT_PORTS or not url.host:
        raise ConfigurationError(
            f"Invalid {field} URL {value!r}: expected http(s)://host[:port][/path]"
        )
    return url


def _host_origin(host: str, use_ssl: bool, port: int | None, field: str) -> str:
    """Build and validate an origin from a bare host name."""
    scheme = "https" if use_ssl else "http"
    origin = _format_origin(scheme, host.strip(), port)
    url = _parse_url(origin, field)
    if url.path not in ("", "/") or url.query:
        raise ConfigurationError(f"Invalid {field} host {host!r}: expected a bare host name")
    return origin


def _resolve_server(cfg: ServerEndpointConfig) -> ClientConfiguration:
    """Resolve the current ``server`` schema."""
    if isinstance(cfg.server, EndpointHosts):
        external = cfg.server.external
        internal = cfg.server.internal
    else:
        external = cfg.server
        internal = None

    public_origin = _host_origin(external, cfg.use_ssl, cfg.port, "server")
    if cfg.internal and internal:
        origin = _host_origin(internal, cfg.use_ssl, cfg.port, "server.internal")
    else:
        origin = public_origin
    prefix = _normalize_prefix(cfg.prefix_path)

    return ClientConfiguration(
        bucket_name=cfg.bucket_name,
        access_key_id=cfg.access_key_id,
        access_key_secret=cfg.access_key_secret,
        endpoint=origin,
        path_prefix=prefix,
        public_endpoint=public_origin,
        public_path_prefix=prefix,
        internal=cfg.internal,
        custom_domain=cfg.custom_domain,
        schema_name="server",
    )


def _split_endpoint(value: str, field: str, extra_prefix: str) -> tuple[str, str]:
    """Split a legacy endpoint URL into origin and normalized path prefix."""
    url = _parse_url(value, field)
    origin = _format_origin(url.scheme, url.host, url.port)
    return origin, _normalize_prefix(join_path(url.path, extra_prefix))


def _resolve_legacy(cfg: LegacyEndpointConfig) -> ClientConfiguration:
    """Resolve the deprecated ``publicEndPoint``/``privateEndPoint`` schema."""
    logger.warning(
        "publicEndPoint/privateEndPoint are deprecated, "
        "configure server/useSSL/port/prefixPath instead"
    )
    public_origin, public_prefix = _split_endpoint(
        cfg.public_endpoint, "publicEndPoint", cfg.prefix
    )
    if cfg.internal and cfg.private_endpoint:
        origin, prefix = _split_endpoint(cfg.private_endpoint, "privateEndPoint", cfg.prefix)
    else:
        origin, prefix = public_origin, public_prefix

    return ClientConfiguration(
        bucket_name=cfg.bucket_name,
        access_key_id=cfg.access_key_id,
        access_key_secret=cfg.access_key_secret,
        endpoint=origin,
        path_prefix=prefix,
        public_endpoint=public_origin,
        public_path_prefix=public_prefix,
        internal=cfg.internal,
        custom_domain=cfg.custom_domain,
        schema_name="legacy",
    )


def resolve_config(
    config: Mapping[str, Any] | ServerEndpointConfig | LegacyEndpointConfig | ClientConfiguration,
) -> ClientConfiguration:
    """Resolve either configuration schema into a :class:`ClientConfiguration`.

    The schema is chosen by the presence of its discriminating field:
    ``server`` selects the current schema and takes precedence;
    ``publicEndPoint`` (or ``public_endpoint``) selects the legacy one.

    Args:
        config: A raw mapping, an already-validated schema model, or an
            already-resolved configuration (returned unchanged).

    Returns:
        The resolved configuration.

    Raises:
        ConfigurationError: If no schema matches, a field fails validation,
            or an endpoint URL is malformed.
    """
    if isinstance(config, ClientConfiguration):
        return config
    if isinstance(config, ServerEndpointConfig):
        return _resolve_server(config)
    if isinstance(config, LegacyEndpointConfig):
        return _resolve_legacy(config)
    if not isinstance(config, Mapping):
        raise ConfigurationError(
            f"Client configuration must be a mapping, got {type(config).__name__}"
        )

    try:
        if "server" in config:
            return _resolve_server(ServerEndpointConfig.model_validate(config))
        if "publicEndPoint" in config or "public_endpoint" in config:
            return _resolve_legacy(LegacyEndpointConfig.model_validate(config))
    except PydanticValidationError as exc:
        raise ConfigurationError(f"Invalid client configuration: {exc}") from exc

    raise ConfigurationError(
        "Client configuration must define either 'server' or 'publicEndPoint'"
    )


# ---------------------------------------------------------------------------
# YAML loading
# ---------------------------------------------------------------------------


def _parse_logging(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the logging section from YAML data."""
    if data is None:
        return {}
    return {
        "level": data.get("level", "INFO"),
        "format": data.get("format", "text"),
    }


def _parse_metrics(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the metrics section from YAML data."""
    if data is None:
        return {}
    return {"enabled": data.get("enabled", False)}


def load_config(path: Path, internal: bool | None = None) -> FSSConfig:
    """Load an FSSConfig from a YAML file.

    Args:
        path: Path to the YAML configuration file.
        internal: When given, overrides the ``internal`` flag of the ``fss``
            section before it is resolved.

    Returns:
        The configuration with the ``fss`` section already resolved.

    Raises:
        FileNotFoundError: If the config file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        ConfigurationError: If the ``fss`` section is missing or invalid.
    """
    with open(path, "r") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    section = raw.get("fss")
    if not isinstance(section, dict):
        raise ConfigurationError(f"Config file {path} has no 'fss' section")
    if internal is not None:
        section = {**section, "internal": internal}

    return FSSConfig(
        fss=resolve_config(section),
        logging=LoggingConfig(**_parse_logging(raw.get("logging"))),
        metrics=MetricsConfig(**_parse_metrics(raw.get("metrics"))),
    )
