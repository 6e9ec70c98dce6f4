"""
Shared test doubles: an in-memory upstream client and sample records.
"""

import asyncio
import copy
import itertools
import os
import sys

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


class FakeUpstreamClient:
    """Stands in for AxcelerateAPIClient.

    Each mapping value is either the response to return or an Exception to
    raise. In-flight enrolment/invoice calls are counted to check the limiter.
    """

    def __init__(
        self,
        instances=None,
        enrolments=None,
        invoices=None,
        delay: float = 0.0,
        enrolment_delays=None,
    ):
        self.instances = instances or {}
        self.enrolments = enrolments or {}
        self.invoices = invoices or {}
        self.delay = delay
        self.enrolment_delays = enrolment_delays or {}
        self.calls = []
        self.in_flight = 0
        self.peak_in_flight = 0
        self.closed = False

    @staticmethod
    def _answer(value):
        if isinstance(value, Exception):
            raise value
        return copy.deepcopy(value)

    async def _gated_call(self, value, delay):
        self.in_flight += 1
        self.peak_in_flight = max(self.peak_in_flight, self.in_flight)
        try:
            await asyncio.sleep(delay)
            return self._answer(value)
        finally:
            self.in_flight -= 1

    async def search_instances(self, location, start, end):
        self.calls.append(("search", location, start, end))
        return self._answer(self.instances.get(location, []))

    async def get_enrolments(self, instance_id):
        self.calls.append(("enrolments", instance_id))
        delay = self.enrolment_delays.get(instance_id, self.delay)
        return await self._gated_call(self.enrolments.get(instance_id, []), delay)

    async def get_invoice(self, invoice_id):
        self.calls.append(("invoice", invoice_id))
        return await self._gated_call(self.invoices.get(invoice_id, {}), self.delay)

    async def close(self):
        self.closed = True

    def count(self, kind):
        return sum(1 for call in self.calls if call[0] == kind)


class FakeMonotonicClock:
    """Manually advanced clock for cache expiry tests"""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_client_cls():
    return FakeUpstreamClient


@pytest.fixture
def fake_clock():
    return FakeMonotonicClock()


@pytest.fixture
def timestamps():
    """Distinct ISO timestamps, one per call"""
    counter = itertools.count(1)
    return lambda: f"2024-04-01T00:00:{next(counter):02d}.000Z"


@pytest.fixture
def forklift_instance():
    return {
        "INSTANCEID": "12345",
        "TRAININGCATEGORY": "Forklift",
        "STARTDATE": "2024-04-22",
        "ENDDATE": "2024-04-26",
        "CAPACITY": 10,
    }


@pytest.fixture
def forklift_enrolments():
    return [{"COST": 1795, "INVOICEID": f"INV-{i}"} for i in range(8)]
