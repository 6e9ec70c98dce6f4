"""
Card Builder - Transform Layer

Turns one upstream course instance, plus the revenue resolved for it, into a
DashboardCard.
"""

import logging
from typing import Any, Dict, Optional

from .fields import (
    CAPACITY,
    END_DATE,
    INSTANCE_ID,
    NUMBERS,
    START_DATE,
    TRAINING_CATEGORY,
    extract_first,
)
from .schemas import DashboardCard, RevenueInfo, RevenueMode

logger = logging.getLogger(__name__)

UNKNOWN_CATEGORY = "Unknown"


def get_instance_identifier(instance: Any) -> Optional[str]:
    """Instance id under any of its known names, or None"""
    return extract_first(instance, INSTANCE_ID)


def select_revenue(revenue: RevenueInfo, revenue_mode: RevenueMode) -> float:
    """Invoice revenue when requested and usable, enrolment revenue otherwise"""
    if revenue_mode is RevenueMode.INVOICE and revenue.invoice_revenue is not None:
        return revenue.invoice_revenue
    return revenue.enrolment_revenue


def build_card(
    instance: Dict[str, Any],
    revenue: RevenueInfo,
    revenue_mode: RevenueMode,
) -> Optional[DashboardCard]:
    """
    Build the dashboard card for one course instance

    Args:
        instance: Raw course instance record
        revenue: Enrolments and revenue already resolved for the instance
        revenue_mode: Requested revenue mode

    Returns:
        Optional[DashboardCard]: None when the instance has no identifier
    """
    instance_id = get_instance_identifier(instance)
    if instance_id is None:
        logger.warning("Skipping instance without identifier")
        return None

    numbers = extract_first(instance, NUMBERS)
    if numbers is None:
        numbers = len(revenue.enrolments)

    capacity = extract_first(instance, CAPACITY)

    return DashboardCard(
        instance_id=instance_id,
        training_category=extract_first(instance, TRAINING_CATEGORY)
        or UNKNOWN_CATEGORY,
        start_date=extract_first(instance, START_DATE),
        end_date=extract_first(instance, END_DATE),
        numbers=int(numbers),
        capacity=int(capacity) if capacity is not None else None,
        revenue=select_revenue(revenue, revenue_mode),
    )
