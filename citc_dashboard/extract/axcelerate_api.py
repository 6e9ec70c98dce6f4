"""
aXcelerate API Client - Pure I/O Operations

This module handles all calls to the aXcelerate training-management API with
no business logic. Returns raw records that the transform layer reads.
Retries and concurrency limits are applied by the callers, not here.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import aiohttp

from ..coreutils.errors import UpstreamError
from .payloads import normalise_array_payload

logger = logging.getLogger(__name__)

# API Endpoints
INSTANCE_SEARCH_ENDPOINT = "/course/instance/search"
ENROLMENTS_ENDPOINT = "/course/enrolments"
INVOICE_ENDPOINT_TEMPLATE = "/accounting/invoice/{invoice_id}"

# Workshop course type, and the page size asked of the instance search
COURSE_TYPE = "w"
SEARCH_PAGE_SIZE = 200

DEFAULT_TIMEOUT = 15


class AxcelerateAPIClient:
    """Async API client for the aXcelerate endpoints the dashboard needs"""

    def __init__(
        self,
        base_url: str,
        api_token: str,
        ws_token: str,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._auth = aiohttp.BasicAuth(api_token, ws_token)
        self._session: Optional[aiohttp.ClientSession] = None

    async def __aenter__(self) -> "AxcelerateAPIClient":
        self._get_session()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    def _get_session(self) -> aiohttp.ClientSession:
        """Create the HTTP session on first use"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                auth=self._auth,
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                },
            )
        return self._session

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    async def _request(self, method: str, endpoint: str, **kwargs: Any) -> Any:
        """Issue one request and return the decoded JSON body.

        Raises:
            UpstreamError: status set for HTTP errors, None for network,
                timeout and decoding failures
        """
        url = f"{self.base_url}{endpoint}"
        start_time = time.time()

        try:
            async with self._get_session().request(method, url, **kwargs) as response:
                if response.status >= 400:
                    raise UpstreamError(
                        f"{method} {endpoint} returned {response.status}",
                        status=response.status,
                    )
                data = await response.json(content_type=None)

        except UpstreamError:
            raise
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise UpstreamError(f"{method} {endpoint} failed: {e!r}") from e

        logger.debug(f"Fetched {method} {endpoint}: {time.time() - start_time:.2f} seconds")
        return data

    async def search_instances(
        self, location: str, start: str, end: str
    ) -> List[Dict[str, Any]]:
        """
        Search course instances at a location starting within a date window

        Args:
            location: Location name as known upstream
            start: Earliest start date (YYYY-MM-DD)
            end: Latest start date (YYYY-MM-DD)

        Returns:
            List[Dict]: Raw course instance records
        """
        body = {
            "type": COURSE_TYPE,
            "location": location,
            "startDate_min": start,
            "startDate_max": end,
            "purgeCache": True,
            "displayLength": SEARCH_PAGE_SIZE,
        }
        logger.info(f"Searching instances for {location} ({start} → {end})")
        data = await self._request("POST", INSTANCE_SEARCH_ENDPOINT, json=body)
        return normalise_array_payload(data)

    async def get_enrolments(self, instance_id: str) -> List[Dict[str, Any]]:
        """Fetch the enrolments of one course instance"""
        params = {"type": COURSE_TYPE, "instanceID": instance_id}
        data = await self._request("GET", ENROLMENTS_ENDPOINT, params=params)
        return normalise_array_payload(data)

    async def get_invoice(self, invoice_id: str) -> Any:
        """Fetch one invoice; the body may be wrapped or an array"""
        endpoint = INVOICE_ENDPOINT_TEMPLATE.format(
            invoice_id=quote(str(invoice_id), safe="")
        )
        return await self._request("GET", endpoint)
