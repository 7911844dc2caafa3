"""
Upstream HTTP client with timeouts and retry logic.

This module provides one client for every external source with:
- Connect and overall request timeouts
- Exponential backoff retry: the delay before retry n is min(2**n, cap)
- Uniform failure reporting through UpstreamError (timeout, transport,
  non-success status, malformed body)
- Per-source URL, query parameters and API-key injection
"""

import httpx
import asyncio
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple
from datetime import datetime, timedelta, timezone
from core.config import Settings
from core.exceptions import UpstreamError, UpstreamFailure, ValidationError
from core.validation import validate_json_payload, validate_url
import logging

logger = logging.getLogger(__name__)

USER_AGENT = "space-data-service/1.0"


def date_range(days_back: int, today: Optional[datetime] = None) -> Tuple[str, str]:
    """(start, end) ISO dates covering the last ``days_back`` days up to today (UTC)"""
    end = (today or datetime.now(timezone.utc)).date()
    start = end - timedelta(days=days_back)
    return start.isoformat(), end.isoformat()


class UpstreamClient:
    """
    Fetch JSON documents from the external sources.

    Attributes:
        max_retries: Retries after the first failed attempt (default: 3)
        backoff_cap: Upper bound of one backoff delay in seconds (default: 32)
    """

    def __init__(
        self,
        settings: Settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        self.settings = settings
        self.max_retries = settings.HTTP_MAX_RETRIES
        self.backoff_cap = settings.HTTP_BACKOFF_CAP_SECS
        self._sleep = sleep

        for url in (
            settings.WHERE_ISS_URL, settings.NASA_API_URL, settings.APOD_URL,
            settings.NEO_URL, settings.DONKI_FLR_URL, settings.DONKI_CME_URL,
            settings.SPACEX_NEXT_URL, settings.JWST_API_URL,
        ):
            validate_url(url)

        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(
                settings.HTTP_TIMEOUT_SECS,
                connect=settings.HTTP_CONNECT_TIMEOUT_SECS
            ),
            headers={"User-Agent": USER_AGENT},
            transport=transport,
        )

        self._operations: Dict[str, Callable[..., Awaitable[Any]]] = {
            "iss": self.fetch_telemetry,
            "osdr": self.fetch_catalog,
            "apod": self.fetch_apod,
            "neo": self.fetch_neo,
            "flr": self.fetch_donki_flr,
            "cme": self.fetch_donki_cme,
            "spacex": self.fetch_spacex_next,
            "jwst": self.fetch_jwst_program,
        }

    async def aclose(self):
        await self._client.aclose()

    def backoff_delay(self, attempt: int) -> float:
        """Delay before the retry that follows failed attempt ``attempt`` (0-based)"""
        return min(2 ** attempt, self.backoff_cap)

    # ------------------------------------------------------------------
    # Request with retry
    # ------------------------------------------------------------------

    async def _request_once(
        self,
        source_name: str,
        url: str,
        params: Dict[str, Any],
        headers: Dict[str, str]
    ) -> Any:
        """
        One GET returning the decoded JSON body.

        Raises:
            UpstreamError: timeout, transport failure, non-2xx status or bad JSON
        """
        context = {"source_name": source_name, "api_url": url}

        try:
            response = await self._client.get(url, params=params, headers=headers)
        except httpx.TimeoutException as e:
            raise UpstreamError(
                f"{source_name} request timed out",
                failure=UpstreamFailure.TIMEOUT,
                context=context,
                original_exception=e
            )
        except httpx.HTTPError as e:
            raise UpstreamError(
                f"{source_name} connection failed",
                failure=UpstreamFailure.TRANSPORT,
                context=context,
                original_exception=e
            )

        if not response.is_success:
            raise UpstreamError(
                f"{source_name} API returned {response.status_code}",
                failure=UpstreamFailure.STATUS,
                status_code=response.status_code,
                context={**context, "response_body": response.text[:500]}
            )

        try:
            return validate_json_payload(response.json())
        except (ValueError, ValidationError) as e:
            raise UpstreamError(
                f"{source_name} API returned a malformed body",
                failure=UpstreamFailure.MALFORMED,
                context={**context, "response_body": response.text[:500]},
                original_exception=e
            )

    async def _get_json(
        self,
        source_name: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ) -> Any:
        """
        GET with exponential backoff retry.

        Every failure class is retried; the last failure is raised once the
        retries are used up.

        Returns:
            Decoded JSON document
        """
        params = {k: v for k, v in (params or {}).items() if v is not None}
        headers = headers or {}

        attempt = 0
        while True:
            try:
                logger.debug(f"Request attempt {attempt + 1}/{self.max_retries + 1} to {url}")
                return await self._request_once(source_name, url, params, headers)
            except UpstreamError as e:
                if attempt >= self.max_retries:
                    e.context["retry_count"] = attempt
                    logger.error(f"{source_name} fetch failed after {attempt + 1} attempts: {e.message}")
                    raise
                delay = self.backoff_delay(attempt)
                logger.warning(
                    f"{e.message}. Retrying in {delay} seconds "
                    f"(attempt {attempt + 1}/{self.max_retries + 1})"
                )
                await self._sleep(delay)
                attempt += 1

    def _nasa_params(self, **params: Any) -> Dict[str, Any]:
        if self.settings.NASA_API_KEY:
            params["api_key"] = self.settings.NASA_API_KEY
        return params

    # ------------------------------------------------------------------
    # Named sources
    # ------------------------------------------------------------------

    async def fetch(self, source_name: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Fetch the named source.

        Raises:
            KeyError: unknown source name
            UpstreamError: the fetch failed after all retries
        """
        operation = self._operations[source_name]
        return await operation(**(params or {}))

    async def fetch_telemetry(self) -> Any:
        """Current ISS position"""
        return await self._get_json("iss", self.settings.WHERE_ISS_URL)

    async def fetch_catalog(self) -> Any:
        """NASA OSDR dataset search"""
        return await self._get_json("osdr", self.settings.NASA_API_URL, self._nasa_params())

    async def fetch_apod(self) -> Any:
        """Astronomy Picture of the Day"""
        return await self._get_json("apod", self.settings.APOD_URL, self._nasa_params(thumbs="true"))

    async def fetch_neo(self, start_date: Optional[str] = None, end_date: Optional[str] = None) -> Any:
        """Near Earth Object feed, last two days by default"""
        if not (start_date and end_date):
            start_date, end_date = date_range(2)
        return await self._get_json(
            "neo",
            self.settings.NEO_URL,
            self._nasa_params(start_date=start_date, end_date=end_date)
        )

    async def fetch_donki_flr(self, start_date: Optional[str] = None, end_date: Optional[str] = None) -> Any:
        """DONKI solar flare events, last five days by default"""
        if not (start_date and end_date):
            start_date, end_date = date_range(5)
        return await self._get_json(
            "flr",
            self.settings.DONKI_FLR_URL,
            self._nasa_params(startDate=start_date, endDate=end_date)
        )

    async def fetch_donki_cme(self, start_date: Optional[str] = None, end_date: Optional[str] = None) -> Any:
        """DONKI coronal mass ejection events, last five days by default"""
        if not (start_date and end_date):
            start_date, end_date = date_range(5)
        return await self._get_json(
            "cme",
            self.settings.DONKI_CME_URL,
            self._nasa_params(startDate=start_date, endDate=end_date)
        )

    async def fetch_spacex_next(self) -> Any:
        """Next SpaceX launch"""
        return await self._get_json("spacex", self.settings.SPACEX_NEXT_URL)

    async def fetch_jwst_program(
        self,
        program_id: Optional[str] = None,
        page: int = 1,
        per_page: int = 24
    ) -> Any:
        """JWST observations of one imaging program"""
        program_id = program_id or self.settings.JWST_PROGRAM_ID
        if not program_id:
            raise UpstreamError(
                "JWST program id is not configured",
                failure=UpstreamFailure.STATUS,
                context={"source_name": "jwst"}
            )

        headers = {}
        if self.settings.JWST_API_KEY:
            headers["x-api-key"] = self.settings.JWST_API_KEY

        url = f"{self.settings.JWST_API_URL.rstrip('/')}/program/id/{program_id}"
        return await self._get_json(
            "jwst",
            url,
            {"page": page, "perPage": per_page, "email": self.settings.JWST_EMAIL},
            headers
        )
