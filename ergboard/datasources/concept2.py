"""Concept2 Logbook API data source implementation."""

import asyncio
import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError as PydanticValidationError

from ergboard.errors import ExternalApiError, SchemaValidationError
from ergboard.models import Concept2User, DateRange, ResultsPage, WorkoutResult
from .base import ResultsSource

logger = logging.getLogger(__name__)

# API constants
API_BASE_URL = "https://log.concept2.com/api"
REQUEST_TIMEOUT = 10.0
PAGE_DELAY = 0.1


class Concept2DataSource(ResultsSource):
    """
    Data source implementation using the Concept2 Logbook API.

    Non-success responses are not retried; a failed page fails the whole
    ``get_all_results`` call.
    """

    def __init__(
        self,
        api_url: str = API_BASE_URL,
        request_timeout: float = REQUEST_TIMEOUT,
        page_delay: float = PAGE_DELAY,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Concept2 data source.

        Args:
            api_url: Base URL for the Logbook API
            request_timeout: Timeout in seconds for each HTTP request
            page_delay: Pause in seconds between successive page requests
            transport: Optional httpx transport (used by tests)
        """
        self.api_url = api_url.rstrip("/")
        self.request_timeout = request_timeout
        self.page_delay = page_delay
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.api_url,
                headers={"Content-Type": "application/json"},
                timeout=self.request_timeout,
                transport=self._transport,
            )
        return self._client

    async def _make_request(
        self,
        endpoint: str,
        access_token: str,
        params: Optional[dict] = None,
    ) -> Any:
        """
        Make an authenticated GET request.

        Args:
            endpoint: API endpoint path
            access_token: Bearer token of the member
            params: Query parameters

        Returns:
            Response JSON data
        """
        client = await self._get_client()
        response = await client.get(
            endpoint,
            params=params,
            headers={"Authorization": f"Bearer {access_token}"},
        )

        if response.is_error:
            logger.error(f"HTTP error {response.status_code} for {endpoint}")
            raise ExternalApiError(response.status_code, response.text, endpoint)

        try:
            return response.json()
        except ValueError as e:
            raise SchemaValidationError(f"Invalid JSON from {endpoint}: {e}") from e

    async def get_user(self, access_token: str) -> Concept2User:
        """Get the profile of the token's owner."""
        data = await self._make_request("/users/me", access_token)

        try:
            return Concept2User.model_validate(data)
        except PydanticValidationError as e:
            raise SchemaValidationError(f"Invalid user profile payload: {e}") from e

    async def get_results(
        self,
        access_token: str,
        date_range: DateRange,
        page: int = 1,
    ) -> ResultsPage:
        """Get a single page of results, filtered to whole calendar days."""
        params = {
            "from": date_range.from_date.isoformat(),
            "to": date_range.to_date.isoformat(),
            "page": page,
        }

        data = await self._make_request("/users/me/results", access_token, params)

        try:
            return ResultsPage.model_validate(data)
        except PydanticValidationError as e:
            raise SchemaValidationError(f"Invalid results payload (page {page}): {e}") from e

    async def get_all_results(
        self,
        access_token: str,
        date_range: DateRange,
    ) -> list[WorkoutResult]:
        """
        Get all results within a date range.

        Walks pages 1..total_pages, pausing between requests to stay under
        the provider's rate limit.
        """
        all_results: list[WorkoutResult] = []
        current_page = 1
        total_pages = 1

        while current_page <= total_pages:
            page = await self.get_results(access_token, date_range, page=current_page)
            all_results.extend(page.data)
            total_pages = page.meta.pagination.total_pages

            logger.debug(
                f"Fetched results page {current_page}/{total_pages} "
                f"({len(page.data)} results)"
            )

            current_page += 1
            if current_page <= total_pages and self.page_delay > 0:
                await asyncio.sleep(self.page_delay)

        return all_results

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
