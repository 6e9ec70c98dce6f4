"""
Test Dashboard Scheduler - periodic refresh and snapshot writing
"""

import os
from unittest.mock import patch

import pytest

from citc_dashboard.coreutils.errors import UpstreamError
from citc_dashboard.coreutils.limiter import ConcurrencyLimiter
from citc_dashboard.load.cache import CacheStore
from citc_dashboard.orchestration.pipeline import SyncOrchestrator
from citc_dashboard.orchestration.scheduler import DashboardScheduler
from citc_dashboard.transformation.schemas import SyncQuery


@pytest.fixture
def make_scheduler(fake_client_cls, fake_clock, timestamps, forklift_instance, tmp_path):
    def _make(instances=None, output_dir=None):
        client = fake_client_cls(instances=instances or {"Whyalla": [forklift_instance]})
        orchestrator = SyncOrchestrator(
            client=client,
            cache=CacheStore(ttl_seconds=25, clock=fake_clock),
            limiter=ConcurrencyLimiter(2),
            retries=0,
            clock=timestamps,
        )
        query = SyncQuery.from_params("2024-04-01", "2024-06-30", "Whyalla")
        return DashboardScheduler(orchestrator, query, interval_seconds=30, output_dir=output_dir)

    return _make


def test_run_refresh_writes_snapshot_once_per_fetch(make_scheduler, fake_clock, tmp_path):
    scheduler = make_scheduler(output_dir=str(tmp_path))

    first = scheduler.run_refresh()
    second = scheduler.run_refresh()
    scheduler.close()

    assert first.cached is False
    assert second.cached is True
    assert scheduler.last_result is second
    assert len(os.listdir(tmp_path)) == 1


def test_run_refresh_survives_upstream_failure(make_scheduler):
    scheduler = make_scheduler(instances={"Whyalla": UpstreamError("down", 500)})

    assert scheduler.run_refresh() is None
    assert scheduler.last_result is None
    scheduler.close()


def test_start_refreshes_immediately_and_closes_client(make_scheduler):
    scheduler = make_scheduler()

    with patch(
        "citc_dashboard.orchestration.scheduler.time.sleep",
        side_effect=lambda seconds: scheduler.stop(),
    ):
        scheduler.start()

    assert scheduler.running is False
    assert scheduler.last_result is not None
    assert scheduler.orchestrator.client.closed


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        DashboardScheduler(None, None, interval_seconds=0)


def test_start_closes_client_when_first_snapshot_fails(make_scheduler, tmp_path):
    scheduler = make_scheduler(output_dir=str(tmp_path))

    with patch(
        "citc_dashboard.orchestration.scheduler.save_json",
        side_effect=OSError("disk full"),
    ):
        with pytest.raises(OSError):
            scheduler.start()

    assert scheduler.orchestrator.client.closed
    assert scheduler._loop.is_closed()
