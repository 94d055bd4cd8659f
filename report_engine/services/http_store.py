"""Record store backed by the report-listing service's JSON API."""

import asyncio
import logging
from typing import Any

import httpx
from pydantic import ValidationError

from report_engine.config import get_settings
from report_engine.errors import SourceUnavailable
from report_engine.schemas.report import Report

logger = logging.getLogger(__name__)


class HttpReportStore:
    """
    Client for the reporting application's report endpoints.

    Features:
    - Optional bearer token
    - Exponential backoff retry (3 attempts) on 429, 5xx and transport errors
    - limit/offset pagination with a safety limit
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_token: str | None = None,
        max_retries: int | None = None,
        timeout: float | None = None,
        page_size: int = 500,
        max_records: int = 20000,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.reports_api_base_url).rstrip("/")
        self.api_token = api_token if api_token is not None else settings.reports_api_token
        self.max_retries = max_retries if max_retries is not None else settings.http_max_retries
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self.page_size = page_size
        self.max_records = max_records

        # Build headers
        self.headers: dict[str, str] = {
            "Accept": "application/json",
        }
        if self.api_token:
            self.headers["Authorization"] = f"Bearer {self.api_token}"

    async def _request_with_retry(
        self,
        url: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Make HTTP request with exponential backoff retry."""
        last_error: Exception | None = None

        for attempt in range(self.max_retries):
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.get(url, headers=self.headers, params=params)
                    response.raise_for_status()
                    return response.json()

            except httpx.HTTPStatusError as e:
                last_error = e
                if e.response.status_code == 429:  # Rate limited
                    wait_time = 2**attempt * 10  # 10s, 20s, 40s
                    logger.warning(f"Rate limited, waiting {wait_time}s before retry")
                    await asyncio.sleep(wait_time)
                elif e.response.status_code >= 500:  # Server error
                    wait_time = 2**attempt
                    logger.warning(f"Server error {e.response.status_code}, retry in {wait_time}s")
                    await asyncio.sleep(wait_time)
                else:
                    raise SourceUnavailable(f"HTTP error: {e}") from e

            except httpx.RequestError as e:
                last_error = e
                wait_time = 2**attempt
                logger.warning(f"Request error: {e}, retry in {wait_time}s")
                await asyncio.sleep(wait_time)

            except ValueError as e:
                raise SourceUnavailable(f"Invalid JSON from {url}: {e}") from e

        raise SourceUnavailable(f"Failed after {self.max_retries} retries: {last_error}")

    def _parse_reports(self, payload: list[dict[str, Any]]) -> list[Report]:
        reports = []
        for record in payload:
            try:
                reports.append(Report.model_validate(record))
            except ValidationError as e:
                logger.warning(f"Skipping malformed report {record.get('id')}: {e.error_count()} errors")
        return reports

    async def fetch_page(self, limit: int, offset: int = 0) -> list[dict[str, Any]]:
        """Fetch one page of raw report records."""
        url = f"{self.base_url}/reports"
        params = {"limit": limit, "offset": offset}

        logger.debug(f"Fetching reports: limit={limit}, offset={offset}")
        records = await self._request_with_retry(url, params)
        if not isinstance(records, list):
            raise SourceUnavailable(f"Expected a JSON list from {url}")
        return records

    async def fetch_all(self) -> list[Report]:
        """
        Fetch every report with pagination.

        Stops at the first empty or short page, or at max_records.
        """
        all_records: list[dict[str, Any]] = []
        offset = 0

        while True:
            batch = await self.fetch_page(limit=self.page_size, offset=offset)

            if not batch:
                break

            all_records.extend(batch)
            offset += self.page_size

            if len(batch) < self.page_size:
                break

            # Safety limit to prevent runaway requests
            if offset >= self.max_records:
                logger.warning(f"Reached safety limit of {self.max_records} records")
                break

        reports = self._parse_reports(all_records)
        logger.info(f"Fetched {len(reports)} reports from {self.base_url}")
        return reports

    async def fetch_by_id(self, report_id: str) -> Report | None:
        """Fetch a single report; None when the service answers 404."""
        url = f"{self.base_url}/reports/{report_id}"
        try:
            record = await self._request_with_retry(url)
        except SourceUnavailable as e:
            cause = e.__cause__
            if isinstance(cause, httpx.HTTPStatusError) and cause.response.status_code == 404:
                return None
            raise

        parsed = self._parse_reports([record]) if isinstance(record, dict) else []
        return parsed[0] if parsed else None
