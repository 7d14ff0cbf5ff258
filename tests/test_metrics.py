"""Tests for Prometheus client metrics."""

import pytest
from conftest import xml_error
from prometheus_client import REGISTRY

from fssclient import metrics
from fssclient.errors import HTTPClientError


def _operations(operation: str, status: str) -> float:
    value = REGISTRY.get_sample_value(
        "fss_client_operations_total", {"operation": operation, "status": status}
    )
    return value or 0.0


def _uploaded() -> float:
    return REGISTRY.get_sample_value("fss_client_bytes_uploaded_total") or 0.0


class TestInitMetrics:
    """Tests for init_metrics()."""

    def test_idempotent(self):
        """Repeated initialisation does not re-register collectors."""
        metrics.init_metrics()
        counter = metrics.operations_total
        metrics.init_metrics()
        assert metrics.operations_total is counter

    def test_counters_registered(self):
        metrics.init_metrics()
        assert metrics.operations_total is not None
        assert metrics.bytes_uploaded_total is not None


class TestRecording:
    """Tests for the recording helpers and client instrumentation."""

    def test_record_operation(self):
        metrics.init_metrics()
        before = _operations("download", "success")
        metrics.record_operation("download", "success")
        assert _operations("download", "success") == before + 1

    def test_record_upload_ignores_unknown_size(self):
        metrics.init_metrics()
        before = _uploaded()
        metrics.record_upload(None)
        assert _uploaded() == before

    async def test_successful_upload_counted(self, fss_client):
        metrics.init_metrics()
        ops_before = _operations("upload", "success")
        bytes_before = _uploaded()
        await fss_client.put("a.txt", "a.txt", b"12345")
        assert _operations("upload", "success") == ops_before + 1
        assert _uploaded() == bytes_before + 5

    async def test_failed_delete_counted(self, fss_client, fake_fss):
        metrics.init_metrics()
        before = _operations("delete", "error")
        fake_fss.queue(xml_error(403, "AccessDenied", "denied"))
        with pytest.raises(HTTPClientError):
            await fss_client.delete("a.txt")
        assert _operations("delete", "error") == before + 1
