"""Async client for the REST Countries API.

The client never raises past :meth:`CountryDataClient.lookup`: every
network, HTTP or payload problem is logged and returned as a failed
:class:`LookupResult`, so callers branch on ``result.ok`` instead of
catching exceptions.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from country_mcp.constants import COUNTRY_API_BASE_URL, COUNTRY_API_TIMEOUT
from country_mcp.errors import UpstreamError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LookupResult:
    """Outcome of a country lookup: either ``records`` or an ``error``."""

    records: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, records: List[Dict[str, Any]]) -> "LookupResult":
        return cls(records=list(records))

    @classmethod
    def failure(cls, reason: str) -> "LookupResult":
        return cls(error=reason)

    def first(self) -> Optional[Dict[str, Any]]:
        """Return the first record, or ``None`` on failure or no match."""
        if not self.ok or not self.records:
            return None
        return self.records[0]


class CountryDataClient:
    """Async HTTP client for ``GET /name/{name}``.

    Parameters
    ----------
    base_url:
        Root URL of the API (e.g. ``https://restcountries.com/v3.1``).
    headers:
        Extra headers applied to every request.
    timeout:
        HTTP request timeout in seconds.
    """

    def __init__(
        self,
        base_url: str = COUNTRY_API_BASE_URL,
        *,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = COUNTRY_API_TIMEOUT,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._headers = headers or {}
        self._timeout = timeout
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    # ── lifecycle ───────────────────────────────────────────────────

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                headers=self._headers,
                timeout=self._timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    # ── public API ──────────────────────────────────────────────────

    async def lookup(self, country_name: str) -> LookupResult:
        """Fetch the records matching *country_name*."""
        try:
            records = await self._fetch(country_name)
        except UpstreamError as exc:
            logger.warning("Failed to fetch country data for '%s': %s", country_name, exc)
            return LookupResult.failure(str(exc))
        except Exception as exc:
            logger.warning(
                "Unexpected error fetching country data for '%s': %s",
                country_name,
                exc,
                exc_info=True,
            )
            return LookupResult.failure(f"Failed to fetch country data: {exc}")
        logger.debug("Lookup '%s' returned %d record(s)", country_name, len(records))
        return LookupResult.success(records)

    async def _fetch(self, country_name: str) -> List[Dict[str, Any]]:
        client = self._ensure_client()
        path = f"/name/{quote(country_name, safe='')}"
        try:
            resp = await client.get(path)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"request to {path} failed: {exc}", orig_exc=exc) from exc

        if resp.status_code >= 400:
            raise UpstreamError(f"request to {path} was rejected", status_code=resp.status_code)

        try:
            payload = resp.json()
        except ValueError as exc:
            raise UpstreamError("response body is not valid JSON", orig_exc=exc) from exc

        if not isinstance(payload, list):
            raise UpstreamError(f"expected a JSON array, got {type(payload).__name__}")
        return [item for item in payload if isinstance(item, dict)]
