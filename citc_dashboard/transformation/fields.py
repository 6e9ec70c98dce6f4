"""
Schema-tolerant field extraction.

The upstream API spells the same logical field several ways depending on the
endpoint and account (INSTANCEID, instanceID, ID...). Each logical field is
declared once below as an ordered list of candidate names, and read through
extract_first. Malformed values are treated as absent, never raised.
"""

import math
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


class FieldKind(str, Enum):
    STRING = "string"
    NUMBER = "number"


@dataclass(frozen=True)
class LogicalField:
    """One logical field and the upstream names it may appear under"""

    name: str
    candidates: tuple
    kind: FieldKind
    nonzero: bool = False  # zero counts as absent, e.g. unset totals


def parse_number(value: Any) -> Optional[float]:
    """Parse loosely formatted numbers such as "$1,795.00"

    Everything except digits, '.' and '-' is stripped before conversion.
    Returns None for missing, empty or unparseable input.
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        cleaned = _NON_NUMERIC.sub("", value)
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
    else:
        return None

    return number if math.isfinite(number) else None


def coerce_string(value: Any) -> Optional[str]:
    """Trimmed non-empty string, or None"""
    if isinstance(value, str):
        return value.strip() or None

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None

    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        if value.is_integer():
            value = int(value)
    return str(value)


def _coerce(value: Any, kind: FieldKind) -> Union[str, float, None]:
    if kind is FieldKind.NUMBER:
        return parse_number(value)
    return coerce_string(value)


def extract_first(record: Any, field: LogicalField) -> Union[str, float, None]:
    """Return the first candidate of field present in record, coerced

    Candidates are tried in declaration order; the first one whose value
    coerces to the field's kind wins.
    """
    if not isinstance(record, dict):
        return None

    for key in field.candidates:
        value = _coerce(record.get(key), field.kind)
        if value is None:
            continue
        if field.nonzero and value == 0:
            continue
        return value

    return None


# =============================================================================
# Course instance fields
# =============================================================================

INSTANCE_ID = LogicalField(
    "instance_id",
    ("INSTANCEID", "instanceID", "InstanceID", "ID", "id", "InstanceId"),
    FieldKind.STRING,
)
TRAINING_CATEGORY = LogicalField(
    "training_category",
    ("TRAININGCATEGORY", "TRAINING_CATEGORY", "ACTIVITYNAME", "COURSETITLE", "Name"),
    FieldKind.STRING,
)
START_DATE = LogicalField(
    "start_date", ("STARTDATE", "START", "START_DATE", "STARTTIME"), FieldKind.STRING
)
END_DATE = LogicalField(
    "end_date",
    ("ENDDATE", "FINISHDATE", "END", "END_DATE", "FINISHTIME"),
    FieldKind.STRING,
)
NUMBERS = LogicalField(
    "numbers",
    ("NUMBERS", "NUMBER", "ENROLMENTS", "TOTALENROLMENTS", "TOTALENROLLED"),
    FieldKind.NUMBER,
)
CAPACITY = LogicalField(
    "capacity",
    ("CAPACITY", "MAXPARTICIPANTS", "MAXENROLMENTS", "CLASSCAPACITY"),
    FieldKind.NUMBER,
)

# =============================================================================
# Enrolment fields
# =============================================================================

ENROLMENT_COST = LogicalField(
    "enrolment_cost", ("cost", "COST", "Cost", "FEE", "AMOUNT"), FieldKind.NUMBER
)
INVOICE_REFERENCE_FIELDS = (
    "invoiceNum",
    "InvoiceNum",
    "INVOICENUM",
    "invoiceID",
    "InvoiceID",
    "INVOICEID",
    "invoiceNumber",
    "INVOICENUMBER",
)

# =============================================================================
# Invoice fields
# =============================================================================

INVOICE_TOTAL = LogicalField(
    "invoice_total",
    (
        "TOTALAMOUNT",
        "TOTAL",
        "TOTALGROSS",
        "TOTALNET",
        "TOTALDUE",
        "TOTALPAID",
        "GrossTotal",
        "NetTotal",
    ),
    FieldKind.NUMBER,
    nonzero=True,
)
INVOICE_LINE_COLLECTIONS = (
    "INVOICELINES",
    "invoiceLines",
    "lines",
    "LINES",
    "LineItems",
    "lineItems",
    "ITEMS",
    "items",
)
INVOICE_AMOUNT = LogicalField(
    "invoice_amount", ("AMOUNT", "Amount", "amount"), FieldKind.NUMBER, nonzero=True
)
LINE_TOTAL = LogicalField(
    "line_total",
    (
        "TOTAL",
        "TOTALGROSS",
        "LINEAMOUNT",
        "LINE_TOTAL",
        "EXTENDEDAMOUNT",
        "Amount",
        "lineTotal",
        "total",
    ),
    FieldKind.NUMBER,
    nonzero=True,
)
LINE_QUANTITY = LogicalField(
    "line_quantity", ("QTY", "QUANTITY", "qty", "quantity"), FieldKind.NUMBER, nonzero=True
)
LINE_UNIT_PRICE = LogicalField(
    "line_unit_price",
    (
        "UNITPRICEGROSS",
        "UNITPRICE",
        "UNITPRICEINC",
        "PRICE",
        "Price",
        "RATE",
        "Rate",
        "unitPrice",
        "price",
        "rate",
    ),
    FieldKind.NUMBER,
    nonzero=True,
)
