"""
Sync Orchestrator

Drives one dashboard sync:
1. Cache lookup by query shape - a live entry is returned as-is
2. On a miss, search course instances location by location
3. Build every card of a location concurrently, dropping the ones that fail
4. Store the aggregate in the cache and return it

A failed instance search aborts the whole sync; nothing partial is cached or
returned. Concurrent misses for the same key both fetch (no coalescing).
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional

from ..coreutils.errors import SyncFailedError, get_status_code, sanitise_error
from ..coreutils.limiter import ConcurrencyLimiter
from ..coreutils.request import DEFAULT_RETRIES, request_with_retry
from ..coreutils.time import utc_now_iso
from ..load.cache import CacheStore
from ..transformation.cards import build_card, get_instance_identifier
from ..transformation.schemas import DashboardCard, RevenueMode, SyncQuery, SyncResult
from .revenue import RevenueResolver

logger = logging.getLogger(__name__)


class SyncOrchestrator:
    """Orchestrates fetch → build → aggregate → cache for dashboard syncs"""

    def __init__(
        self,
        client: Any,
        cache: CacheStore,
        limiter: ConcurrencyLimiter,
        retries: int = DEFAULT_RETRIES,
        clock: Callable[[], str] = utc_now_iso,
    ):
        """
        Initialize the orchestrator

        Args:
            client: Upstream client (search_instances, get_enrolments, get_invoice)
            cache: Process-wide result cache
            limiter: Process-wide limiter for enrolment and invoice fetches
            retries: Retries per upstream call after the first attempt
            clock: Source of the `updated` timestamp
        """
        self.client = client
        self.cache = cache
        self.limiter = limiter
        self.retries = retries
        self.clock = clock
        self.revenue_resolver = RevenueResolver(client, limiter, retries=retries)

    async def sync(self, query: SyncQuery) -> SyncResult:
        """
        Return dashboard cards per location for a query

        Args:
            query: Validated sync query

        Returns:
            SyncResult: cached=True when served from a live cache entry

        Raises:
            SyncFailedError: If an instance search fails after retries
        """
        date_range = {"start": query.start.isoformat(), "end": query.end.isoformat()}
        cache_key = query.cache_key

        entry = self.cache.get(cache_key)
        if entry is not None:
            logger.info(f"Cache hit for {cache_key}")
            return SyncResult(
                cached=True, updated=entry.updated, range=date_range, data=entry.data
            )

        logger.info(
            f"🔄 Syncing {len(query.locations)} locations "
            f"({date_range['start']} → {date_range['end']}, {query.revenue_mode.value})"
        )

        try:
            data: Dict[str, List[DashboardCard]] = {}
            for location in query.locations:
                data[location] = await self.sync_location(location, query)
        except Exception as e:
            detail = sanitise_error(e)
            logger.error(f"❌ Upstream error: {detail}")
            raise SyncFailedError(status_code=get_status_code(e), detail=detail) from e

        updated = self.clock()
        self.cache.put(cache_key, data, updated)

        card_count = sum(len(cards) for cards in data.values())
        logger.info(f"✅ Synced {card_count} cards across {len(data)} locations")
        return SyncResult(cached=False, updated=updated, range=date_range, data=data)

    async def sync_location(self, location: str, query: SyncQuery) -> List[DashboardCard]:
        """Cards for one location, in upstream instance order"""
        start, end = query.start.isoformat(), query.end.isoformat()
        instances = await request_with_retry(
            lambda: self.client.search_instances(location, start, end),
            retries=self.retries,
        )
        logger.info(f"Fetched {len(instances)} instances for {location}")

        results = await asyncio.gather(
            *(self.build_card(instance, query.revenue_mode) for instance in instances),
            return_exceptions=True,
        )

        cards = []
        for result in results:
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.error(
                    f"❌ Failed to build card for instance at {location}: "
                    f"{sanitise_error(result)}"
                )
                continue
            if result is not None:
                cards.append(result)

        return cards

    async def build_card(
        self, instance: Dict[str, Any], revenue_mode: RevenueMode
    ) -> Optional[DashboardCard]:
        """Resolve revenue for one instance and build its card"""
        instance_id = get_instance_identifier(instance)
        if instance_id is None:
            logger.warning("Skipping instance without identifier")
            return None

        revenue = await self.revenue_resolver.resolve(instance_id, revenue_mode)
        return build_card(instance, revenue, revenue_mode)
