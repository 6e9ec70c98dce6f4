"""
Error taxonomy for the dashboard sync.

Validation errors are raised before any upstream call. Upstream errors carry
the HTTP status (None for network/parse failures) so the retry loop can tell
transient from permanent failures. Anything that aborts a whole sync is
surfaced to callers as SyncFailedError with a generic message only.
"""

from typing import Any, Dict, Optional

GENERIC_SYNC_FAILURE = "Failed to synchronise data"


class DashboardSyncError(Exception):
    """Base class for all dashboard sync errors"""


class SyncValidationError(DashboardSyncError, ValueError):
    """Malformed or missing query parameters"""


class ConfigurationError(DashboardSyncError):
    """The process is not configured to reach the upstream API"""


class UpstreamError(DashboardSyncError):
    """A failed call to the upstream training-management API"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class SyncFailedError(DashboardSyncError):
    """A sync that could not complete; detail is for logs, not for callers"""

    def __init__(self, status_code: int = 502, detail: Optional[Dict[str, Any]] = None):
        super().__init__(GENERIC_SYNC_FAILURE)
        self.status_code = status_code
        self.detail = detail or {}


def get_error_status(error: BaseException) -> Optional[int]:
    """Status code carried by an error, if any"""
    status = getattr(error, "status", None)
    if status is None:
        response = getattr(error, "response", None)
        status = getattr(response, "status", None)
    return status if isinstance(status, int) else None


def sanitise_error(error: BaseException) -> Dict[str, Any]:
    return {
        "status": get_error_status(error),
        "message": str(error) or "Unknown error",
    }


def get_status_code(error: BaseException) -> int:
    """HTTP status to hand back to a caller for a failed sync"""
    status = get_error_status(error)
    if status and 400 <= status < 600:
        return status
    return 502
