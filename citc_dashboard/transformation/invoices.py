"""
Revenue Math - Transform Layer

Pure functions deriving revenue from enrolment and invoice records. Invoices
come in several shapes: some carry a total, others only line items, others
just an amount. Each shape is tried in turn.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional

from .fields import (
    ENROLMENT_COST,
    INVOICE_AMOUNT,
    INVOICE_LINE_COLLECTIONS,
    INVOICE_REFERENCE_FIELDS,
    INVOICE_TOTAL,
    LINE_QUANTITY,
    LINE_TOTAL,
    LINE_UNIT_PRICE,
    coerce_string,
    extract_first,
)

logger = logging.getLogger(__name__)


def enrolment_revenue(enrolments: Iterable[Dict[str, Any]]) -> float:
    """Sum of enrolment costs; enrolments without a cost count as 0"""
    return sum((extract_first(e, ENROLMENT_COST) or 0.0) for e in enrolments)


def collect_invoice_ids(enrolments: Iterable[Dict[str, Any]]) -> List[str]:
    """
    Distinct invoice ids referenced by any enrolment

    Reference fields may hold a single value or a list of values. Ids are
    trimmed, blanks dropped, and order of first appearance is kept.
    """
    ids: Dict[str, None] = {}

    for enrolment in enrolments:
        if not isinstance(enrolment, dict):
            continue
        for field in INVOICE_REFERENCE_FIELDS:
            value = enrolment.get(field)
            if value is None:
                continue
            values = value if isinstance(value, (list, tuple, set)) else [value]
            for item in values:
                invoice_id = coerce_string(item)
                if invoice_id:
                    ids.setdefault(invoice_id, None)

    return list(ids)


def get_invoice_lines(invoice: Dict[str, Any]) -> List[Any]:
    """Locate the line items of an invoice under any of its known names"""
    for key in INVOICE_LINE_COLLECTIONS:
        lines = invoice.get(key)
        if not lines:
            continue
        if isinstance(lines, list):
            return lines
        if isinstance(lines, dict):
            # {"LINE": [...]} wrapper, or a single line given as an object
            for value in lines.values():
                if isinstance(value, list):
                    return value
            return [lines]
        return []

    return []


def derive_line_total(line: Any) -> float:
    """Explicit line total, else quantity (default 1) × unit price (default 0)"""
    if not isinstance(line, dict):
        return 0.0

    total = extract_first(line, LINE_TOTAL)
    if total is not None:
        return total

    quantity = extract_first(line, LINE_QUANTITY) or 1.0
    price = extract_first(line, LINE_UNIT_PRICE) or 0.0
    return quantity * price


def invoice_total(invoice: Optional[Dict[str, Any]]) -> Optional[float]:
    """
    Derive the total of one invoice record

    Args:
        invoice: Unwrapped invoice record, or None if the response held none

    Returns:
        Optional[float]: The total, or None if nothing usable was found
    """
    if not isinstance(invoice, dict):
        return None

    total = extract_first(invoice, INVOICE_TOTAL)
    if total is not None:
        return total

    line_sum = sum(derive_line_total(line) for line in get_invoice_lines(invoice))
    if line_sum > 0:
        return line_sum

    return extract_first(invoice, INVOICE_AMOUNT)


def sum_invoice_totals(totals: Iterable[Optional[float]]) -> Optional[float]:
    """Invoice revenue, or None when invoices give no positive total"""
    summed = sum(t for t in totals if t is not None)
    if summed > 0:
        return summed
    return None
