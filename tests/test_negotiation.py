"""Tests for copy capability negotiation."""

import logging

import httpx
import pytest
from conftest import xml_error

from fssclient.config import resolve_config
from fssclient.errors import HTTPClientError, HTTPServerError
from fssclient.negotiation import (
    CopyCapability,
    build_probe_request,
    capability_for_version,
    copy_source,
    parse_major_version,
    probe_copy_capability,
)
from fssclient.transport import StreamingTransport


@pytest.fixture
async def transport(fake_fss):
    http = httpx.AsyncClient(transport=fake_fss)
    yield StreamingTransport(http)
    await http.aclose()


class TestVersionParsing:
    """Tests for parse_major_version() and capability_for_version()."""

    @pytest.mark.parametrize(
        "value, major",
        [
            ("2.0", 2),
            ("1.9.3", 1),
            ("v3", 3),
            (" 10.1 ", 10),
            ("abc", None),
            ("", None),
            (None, None),
        ],
    )
    def test_parse_major_version(self, value, major):
        assert parse_major_version(value) == major

    def test_cross_bucket_above_major_1(self):
        assert capability_for_version("2.0") is CopyCapability.CROSS_BUCKET

    @pytest.mark.parametrize("value", ["1.0", "0.9", None, "unknown"])
    def test_same_bucket_otherwise(self, value):
        assert capability_for_version(value) is CopyCapability.SAME_BUCKET_ONLY


class TestProbe:
    """Tests for build_probe_request() and probe_copy_capability()."""

    def test_probe_request(self, server_config):
        config = resolve_config({**server_config, "prefixPath": "/proxy"})
        request = build_probe_request(config)
        assert request.method == "HEAD"
        assert request.url == "http://fss.example.com/proxy/apiversion"
        assert "authorization" not in request.headers

    async def test_version_2(self, transport, fake_fss, server_config):
        fake_fss.queue(httpx.Response(200, headers={"x-fss-server-version": "2.0"}))
        capability = await probe_copy_capability(transport, resolve_config(server_config))
        assert capability is CopyCapability.CROSS_BUCKET
        assert fake_fss.last.method == "HEAD"
        assert fake_fss.last.url == "http://fss.example.com/apiversion"

    async def test_missing_header(self, transport, fake_fss, server_config):
        fake_fss.queue(httpx.Response(200))
        capability = await probe_copy_capability(transport, resolve_config(server_config))
        assert capability is CopyCapability.SAME_BUCKET_ONLY

    async def test_405_means_same_bucket(self, transport, fake_fss, server_config):
        fake_fss.queue(httpx.Response(405))
        capability = await probe_copy_capability(transport, resolve_config(server_config))
        assert capability is CopyCapability.SAME_BUCKET_ONLY

    async def test_405_not_logged_as_failure(self, transport, fake_fss, server_config, caplog):
        """The expected 405 fallback is logged at DEBUG only."""
        fake_fss.queue(httpx.Response(405))
        with caplog.at_level(logging.DEBUG, logger="fssclient"):
            await probe_copy_capability(transport, resolve_config(server_config))
        failures = [r for r in caplog.records if "request failed" in r.getMessage()]
        assert failures
        assert all(r.levelno == logging.DEBUG for r in failures)

    async def test_other_client_error_raised(self, transport, fake_fss, server_config, caplog):
        fake_fss.queue(xml_error(403, "AccessDenied", "denied"))
        with caplog.at_level(logging.DEBUG, logger="fssclient"):
            with pytest.raises(HTTPClientError) as exc_info:
                await probe_copy_capability(transport, resolve_config(server_config))
        assert exc_info.value.status == 403
        failures = [r for r in caplog.records if "request failed" in r.getMessage()]
        assert [r.levelno for r in failures] == [logging.INFO]

    async def test_server_error_raised(self, transport, fake_fss, server_config):
        fake_fss.queue(httpx.Response(503))
        with pytest.raises(HTTPServerError):
            await probe_copy_capability(transport, resolve_config(server_config))


class TestCopySource:
    """Tests for copy_source()."""

    def test_cross_bucket(self):
        source = copy_source(CopyCapability.CROSS_BUCKET, "src.txt", "other", "my-bucket")
        assert source == "other/src.txt"

    def test_cross_bucket_leading_slash(self):
        source = copy_source(CopyCapability.CROSS_BUCKET, "/src.txt", "other", "my-bucket")
        assert source == "other/src.txt"

    def test_same_bucket(self):
        source = copy_source(CopyCapability.SAME_BUCKET_ONLY, "src.txt", "my-bucket", "my-bucket")
        assert source == "src.txt"

    def test_same_bucket_ignores_other_bucket(self, caplog):
        with caplog.at_level(logging.WARNING, logger="fssclient.negotiation"):
            source = copy_source(CopyCapability.SAME_BUCKET_ONLY, "src.txt", "other", "my-bucket")
        assert source == "src.txt"
        assert any("cross-bucket" in record.getMessage() for record in caplog.records)
