"""Shared pytest fixtures for FSS client tests.

The FSS service is faked by :class:`FakeFSS`, an httpx transport. Every
request the client starts is recorded as soon as the transport receives it,
before its body is read, so a request aborted part-way through its body
still shows up in ``requests``. Replies come from a queue of canned
responses (an empty queue answers ``200 OK``).

The client clock is frozen at ``NOW`` so request dates, signatures and
presigned URL expiries are reproducible.
"""

from collections.abc import Callable

import httpx
import pytest

from fssclient.client import FSSClient

NOW = 1_700_000_000.0

Responder = httpx.Response | Callable[[httpx.Request], httpx.Response]


class FakeFSS(httpx.AsyncBaseTransport):
    """Records requests and replies from a queue of canned responses.

    Attributes:
        requests: Every request started, in order, recorded before its body
            is read.
        bodies: The fully read body of each request whose body could be read.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.bodies: list[bytes] = []
        self._responses: list[Responder] = []

    def queue(self, *responses: Responder) -> None:
        """Append responses (or request -> response callables) to the queue."""
        self._responses.extend(responses)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        self.bodies.append(await request.aread())
        if not self._responses:
            return httpx.Response(200)
        response = self._responses.pop(0)
        if callable(response):
            return response(request)
        return response

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def xml_error(status: int, code: str, message: str, **extra: str) -> httpx.Response:
    """Build an FSS XML error response."""
    fields = "".join(f"<{name}>{value}</{name}>" for name, value in extra.items())
    body = (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        f"<Error><Code>{code}</Code><Message>{message}</Message>{fields}</Error>"
    )
    return httpx.Response(
        status, content=body.encode(), headers={"content-type": "application/xml"}
    )


@pytest.fixture
def server_config() -> dict:
    """A current-schema configuration for a plain-HTTP endpoint."""
    return {
        "server": "fss.example.com",
        "bucketName": "my-bucket",
        "accessKeyId": "test-id",
        "accessKeySecret": "test-secret",
    }


@pytest.fixture
def fake_fss() -> FakeFSS:
    return FakeFSS()


@pytest.fixture
async def fss_client(server_config, fake_fss):
    """An FSSClient wired to the fake service with a frozen clock."""
    http = httpx.AsyncClient(transport=fake_fss)
    client = FSSClient(server_config, http_client=http, clock=lambda: NOW)
    yield client
    await http.aclose()
