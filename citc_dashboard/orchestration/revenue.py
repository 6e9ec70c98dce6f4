"""
Revenue Resolver - Orchestration Layer

Fetches the enrolments (and, in invoice mode, the invoices) of one course
instance and resolves its revenue. Every fetch goes through the retry loop
and the shared concurrency limiter.
"""

import asyncio
import logging
from typing import Any, List, Optional

from ..coreutils.errors import sanitise_error
from ..coreutils.limiter import ConcurrencyLimiter
from ..coreutils.request import DEFAULT_RETRIES, request_with_retry
from ..extract.payloads import normalise_invoice_payload
from ..transformation.invoices import (
    collect_invoice_ids,
    enrolment_revenue,
    invoice_total,
    sum_invoice_totals,
)
from ..transformation.schemas import RevenueInfo, RevenueMode

logger = logging.getLogger(__name__)


class RevenueResolver:
    """Resolves enrolment and invoice revenue for course instances"""

    def __init__(
        self,
        client: Any,
        limiter: ConcurrencyLimiter,
        retries: int = DEFAULT_RETRIES,
    ):
        """
        Initialize the resolver

        Args:
            client: Upstream client exposing get_enrolments and get_invoice
            limiter: Process-wide limiter shared with every other fetch
            retries: Retries per upstream call after the first attempt
        """
        self.client = client
        self.limiter = limiter
        self.retries = retries

    async def _fetch(self, call, *args):
        # Limiter inside the retry loop so backoff waits do not hold a slot
        return await request_with_retry(
            lambda: self.limiter.run(lambda: call(*args)), retries=self.retries
        )

    async def fetch_enrolments(self, instance_id: str) -> List[dict]:
        return await self._fetch(self.client.get_enrolments, instance_id)

    async def fetch_invoice_total(self, invoice_id: str) -> Optional[float]:
        """Invoice total, or None if the invoice could not be fetched"""
        try:
            payload = await self._fetch(self.client.get_invoice, invoice_id)
        except Exception as e:
            logger.error(f"❌ Failed to fetch invoice {invoice_id}: {sanitise_error(e)}")
            return None
        return invoice_total(normalise_invoice_payload(payload))

    async def resolve(self, instance_id: str, revenue_mode: RevenueMode) -> RevenueInfo:
        """
        Resolve the revenue of one course instance

        Args:
            instance_id: Upstream instance identifier
            revenue_mode: enrolment or invoice

        Returns:
            RevenueInfo: enrolments, enrolment revenue, and invoice revenue
                (None unless invoice mode found a positive total)
        """
        enrolments = await self.fetch_enrolments(instance_id)
        enrolment_total = enrolment_revenue(enrolments)
        invoice_sum = None

        if revenue_mode is RevenueMode.INVOICE:
            invoice_ids = collect_invoice_ids(enrolments)
            if invoice_ids:
                logger.debug(
                    f"Resolving {len(invoice_ids)} invoices for instance {instance_id}"
                )
                totals = await asyncio.gather(
                    *(self.fetch_invoice_total(invoice_id) for invoice_id in invoice_ids)
                )
                invoice_sum = sum_invoice_totals(totals)

        return RevenueInfo(
            enrolments=enrolments,
            enrolment_revenue=enrolment_total,
            invoice_revenue=invoice_sum,
        )
