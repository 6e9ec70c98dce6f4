"""
Scheduler - Orchestration Layer

Periodic dashboard refresh. Each run syncs the configured query and, when an
output directory is set, writes the result as a JSON snapshot.
"""

import asyncio
import logging
import os
import time
from datetime import datetime
from typing import Optional

import schedule

from ..coreutils.errors import SyncFailedError
from ..load.local_storage import save_json
from ..transformation.schemas import SyncQuery, SyncResult
from .pipeline import SyncOrchestrator

logger = logging.getLogger(__name__)


class DashboardScheduler:
    """Refreshes one dashboard query on a fixed interval"""

    def __init__(
        self,
        orchestrator: SyncOrchestrator,
        query: SyncQuery,
        interval_seconds: int = 60,
        output_dir: Optional[str] = None,
    ):
        if interval_seconds < 1:
            raise ValueError(f"interval_seconds must be at least 1, got {interval_seconds}")

        self.orchestrator = orchestrator
        self.query = query
        self.interval_seconds = interval_seconds
        self.output_dir = output_dir
        self.running = False
        self.last_result: Optional[SyncResult] = None

        # One loop for every run: the HTTP session and limiter stay bound to it
        self._loop = asyncio.new_event_loop()
        self._scheduler = schedule.Scheduler()

    def run_refresh(self) -> Optional[SyncResult]:
        """Sync once; upstream failures are logged and the next run retries"""
        logger.info("🔄 Running dashboard refresh...")

        try:
            result = self._loop.run_until_complete(self.orchestrator.sync(self.query))
        except SyncFailedError as e:
            logger.error(f"❌ Dashboard refresh failed ({e.status_code}): {e.detail}")
            return None

        self.last_result = result
        if self.output_dir and not result.cached:
            stamp = datetime.now().strftime("%Y-%m-%d_%H%M%S")
            save_json(result, os.path.join(self.output_dir, f"dashboard_{stamp}.json"))

        logger.info(f"✅ Dashboard refresh completed (cached={result.cached})")
        return result

    def start(self):
        """Start the scheduler; blocks until stopped"""
        logger.info(f"🚀 Starting dashboard scheduler (every {self.interval_seconds}s)...")

        self._scheduler.every(self.interval_seconds).seconds.do(self.run_refresh)
        self.running = True

        try:
            self.run_refresh()
            while self.running:
                self._scheduler.run_pending()
                time.sleep(1)

        except KeyboardInterrupt:
            logger.info("🛑 Scheduler stopped by user")
            self.running = False

        finally:
            self.close()

    def stop(self):
        """Stop the scheduler"""
        logger.info("🛑 Stopping scheduler...")
        self.running = False

    def close(self):
        """Release the upstream client and the event loop"""
        self._scheduler.clear()
        if self._loop.is_closed():
            return

        close_client = getattr(self.orchestrator.client, "close", None)
        if close_client is not None:
            self._loop.run_until_complete(close_client())
        self._loop.close()
