"""
Dashboard Schemas

Typed shapes for the sync query, the cards it produces and the result handed
back to callers. Upstream records themselves stay plain dicts.
"""

import math
import re
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..coreutils.errors import SyncValidationError

DEFAULT_LOCATIONS = ("Mount Gambier", "Port Pirie", "Whyalla")
LOCATION_SEPARATOR = "|"

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class RevenueMode(str, Enum):
    ENROLMENT = "enrolment"
    INVOICE = "invoice"


class SyncQuery(BaseModel):
    """One dashboard sync request; immutable once built"""

    model_config = ConfigDict(frozen=True)

    start: date = Field(..., description="Earliest instance start date")
    end: date = Field(..., description="Latest instance start date")
    locations: Tuple[str, ...] = Field(
        ..., min_length=1, description="Upstream location names, in output order"
    )
    revenue_mode: RevenueMode = Field(
        RevenueMode.ENROLMENT, description="How card revenue is computed"
    )

    @field_validator("start", "end", mode="before")
    @classmethod
    def validate_iso_date(cls, v):
        """Dates must be real calendar dates in YYYY-MM-DD form"""
        if isinstance(v, date):
            return v
        if not isinstance(v, str) or not _ISO_DATE.match(v):
            raise ValueError("must be provided in YYYY-MM-DD format")
        return v

    @field_validator("locations", mode="before")
    @classmethod
    def validate_locations(cls, v):
        """Trim location names and reject blank ones"""
        if isinstance(v, str) or not isinstance(v, Sequence):
            raise ValueError("locations must be a sequence of names")
        cleaned = []
        for location in v:
            if not isinstance(location, str) or not location.strip():
                raise ValueError("locations must be non-empty strings")
            if LOCATION_SEPARATOR in location:
                raise ValueError(
                    f"location names must not contain '{LOCATION_SEPARATOR}': {location!r}"
                )
            cleaned.append(location.strip())
        return tuple(cleaned)

    @property
    def cache_key(self) -> str:
        return "::".join(
            [
                self.start.isoformat(),
                self.end.isoformat(),
                LOCATION_SEPARATOR.join(self.locations),
                self.revenue_mode.value,
            ]
        )

    @classmethod
    def from_params(
        cls,
        start: Any,
        end: Any,
        locations: Union[str, Sequence[str], None] = None,
        revenue_mode: Optional[str] = None,
    ) -> "SyncQuery":
        """Build a query from raw caller parameters

        Raises:
            SyncValidationError: On bad dates or an unsupported revenue mode
        """
        if isinstance(revenue_mode, RevenueMode):
            revenue_mode = revenue_mode.value
        mode = str(revenue_mode).strip().lower() if revenue_mode else "enrolment"
        if mode not in {m.value for m in RevenueMode}:
            raise SyncValidationError("revenueMode must be 'enrolment' or 'invoice'")

        try:
            return cls(
                start=start,
                end=end,
                locations=parse_locations(locations),
                revenue_mode=mode,
            )
        except ValidationError as e:
            fields = sorted({str(err["loc"][0]) for err in e.errors() if err["loc"]})
            if {"start", "end"} & set(fields):
                raise SyncValidationError(
                    "start and end must be provided in YYYY-MM-DD format"
                ) from e
            raise SyncValidationError(f"Invalid sync query: {', '.join(fields)}") from e


def parse_locations(value: Union[str, Sequence[str], None]) -> Tuple[str, ...]:
    """Split "A|B" (or a list) into names, defaulting when nothing is left"""
    if not value:
        return DEFAULT_LOCATIONS

    if isinstance(value, str):
        parts = value.split(LOCATION_SEPARATOR)
    else:
        parts = [str(item) for item in value]

    names = tuple(part.strip() for part in parts if part and part.strip())
    return names or DEFAULT_LOCATIONS


class DashboardCard(BaseModel):
    """Dashboard-ready summary of one course instance"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    instance_id: str = Field(..., alias="instanceID")
    training_category: str = Field("Unknown", alias="trainingCategory")
    start_date: Optional[str] = Field(None, alias="startDate")
    end_date: Optional[str] = Field(None, alias="endDate")
    numbers: int = Field(0, description="Enrolled participants")
    capacity: Optional[int] = Field(None, description="Places available")
    revenue: float = Field(0.0, description="Revenue for the instance")

    @field_validator("revenue")
    @classmethod
    def validate_revenue(cls, v):
        """Revenue must always be a finite number"""
        if not math.isfinite(v):
            raise ValueError("revenue must be finite")
        return v


class RevenueInfo(BaseModel):
    """Enrolments of one instance and the revenue derived from them"""

    enrolments: List[Any] = Field(default_factory=list)
    enrolment_revenue: float = 0.0
    invoice_revenue: Optional[float] = None


class SyncResult(BaseModel):
    """What a sync hands back to its caller"""

    cached: bool
    updated: str = Field(..., description="ISO 8601 time the data was fetched")
    range: Dict[str, str]
    data: Dict[str, List[DashboardCard]]

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready dict using the dashboard's camelCase card keys"""
        return self.model_dump(by_alias=True)
