"""
Payload shape normalisation.

aXcelerate endpoints are inconsistent about how they wrap results: bare
arrays, {"DATA": [...]}, {"data": [...]}, {"rows": [...]} and so on. These
helpers reduce each response to the records the rest of the pipeline reads.
"""

from typing import Any, Dict, List, Optional

ARRAY_WRAPPER_KEYS = ("DATA", "data", "rows", "results")
INVOICE_WRAPPER_KEYS = ("DATA", "data")


def normalise_array_payload(payload: Any) -> List[Any]:
    """Return the list of records carried by a response body"""
    if not payload:
        return []

    if isinstance(payload, list):
        return payload

    if isinstance(payload, dict):
        for key in ARRAY_WRAPPER_KEYS:
            if isinstance(payload.get(key), list):
                return payload[key]

        # Fall back to the first array-valued field, whatever it is called
        for value in payload.values():
            if isinstance(value, list):
                return value

    return []


def normalise_invoice_payload(payload: Any) -> Optional[Dict[str, Any]]:
    """Return the single invoice record carried by a response body"""
    if not payload:
        return None

    if isinstance(payload, list):
        first = payload[0]
        return first if isinstance(first, dict) else None

    if not isinstance(payload, dict):
        return None

    for key in INVOICE_WRAPPER_KEYS:
        wrapped = payload.get(key)
        if isinstance(wrapped, list) and wrapped:
            return wrapped[0] if isinstance(wrapped[0], dict) else None
        if isinstance(wrapped, dict) and wrapped:
            return wrapped

    return payload
