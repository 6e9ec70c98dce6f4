"""
Test Extract Layer - request shapes and error mapping of the aXcelerate client
"""

import asyncio
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

import aiohttp
import pytest

from citc_dashboard.coreutils.errors import UpstreamError
from citc_dashboard.coreutils.request import is_retryable
from citc_dashboard.extract.axcelerate_api import AxcelerateAPIClient


class FakeResponse:
    def __init__(self, status=200, body=None, error=None):
        self.status = status
        self._body = body
        self._error = error

    async def json(self, content_type=None):
        if self._error:
            raise self._error
        return self._body


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.closed = False
        self.requests = []

    @asynccontextmanager
    async def _respond(self):
        if self.error:
            raise self.error
        yield self.response

    def request(self, method, url, **kwargs):
        self.requests.append((method, url, kwargs))
        return self._respond()

    async def close(self):
        self.closed = True


def make_client(session):
    client = AxcelerateAPIClient("https://example.test/api/", "api-token", "ws-token")
    client._session = session
    return client


@pytest.mark.asyncio
async def test_search_instances_request_shape():
    session = FakeSession(FakeResponse(body=[{"INSTANCEID": 1}]))
    client = make_client(session)

    instances = await client.search_instances("Whyalla", "2024-04-01", "2024-06-30")

    assert instances == [{"INSTANCEID": 1}]
    method, url, kwargs = session.requests[0]
    assert method == "POST"
    assert url == "https://example.test/api/course/instance/search"
    assert kwargs["json"] == {
        "type": "w",
        "location": "Whyalla",
        "startDate_min": "2024-04-01",
        "startDate_max": "2024-06-30",
        "purgeCache": True,
        "displayLength": 200,
    }


@pytest.mark.asyncio
async def test_get_enrolments_unwraps_payload():
    session = FakeSession(FakeResponse(body={"DATA": [{"COST": 10}]}))
    client = make_client(session)

    enrolments = await client.get_enrolments("12345")

    assert enrolments == [{"COST": 10}]
    method, url, kwargs = session.requests[0]
    assert (method, url) == ("GET", "https://example.test/api/course/enrolments")
    assert kwargs["params"] == {"type": "w", "instanceID": "12345"}


@pytest.mark.asyncio
async def test_get_invoice_quotes_identifier():
    session = FakeSession(FakeResponse(body={"TOTAL": 1}))
    client = make_client(session)

    assert await client.get_invoice("INV 1/2") == {"TOTAL": 1}
    assert session.requests[0][1] == "https://example.test/api/accounting/invoice/INV%201%2F2"


@pytest.mark.asyncio
async def test_http_error_carries_status():
    client = make_client(FakeSession(FakeResponse(status=503)))

    with pytest.raises(UpstreamError) as exc_info:
        await client.get_enrolments("1")

    assert exc_info.value.status == 503
    assert is_retryable(exc_info.value)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "session",
    [
        FakeSession(error=aiohttp.ClientConnectionError("reset")),
        FakeSession(error=asyncio.TimeoutError()),
        FakeSession(FakeResponse(error=ValueError("not json"))),
    ],
)
async def test_transport_failures_have_no_status(session):
    client = make_client(session)

    with pytest.raises(UpstreamError) as exc_info:
        await client.get_invoice("1")

    assert exc_info.value.status is None
    assert is_retryable(exc_info.value)


@pytest.mark.asyncio
async def test_context_manager_closes_session():
    session = FakeSession(FakeResponse(body=[]))
    client = make_client(session)

    async with client:
        await client.get_enrolments("1")

    assert session.closed
    assert client._session is None


def test_permanent_error_classification():
    assert not is_retryable(UpstreamError("bad request", 400))
    assert is_retryable(UpstreamError("server", 500))
