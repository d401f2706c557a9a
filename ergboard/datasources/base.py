"""Abstract base class for workout data sources."""

from abc import ABC, abstractmethod

from ergboard.models import Concept2User, DateRange, ResultsPage, WorkoutResult


class ResultsSource(ABC):
    """
    Abstract interface for workout result providers.

    Every call is authenticated with the member's own access token, so a
    single instance serves all members.
    """

    @abstractmethod
    async def get_user(self, access_token: str) -> Concept2User:
        """
        Retrieve the profile of the token's owner.

        Raises:
            ExternalApiError: provider returned a non-success status
            SchemaValidationError: payload did not match the profile schema
        """
        pass

    @abstractmethod
    async def get_results(
        self,
        access_token: str,
        date_range: DateRange,
        page: int = 1,
    ) -> ResultsPage:
        """
        Retrieve a single page of results within a date range.

        Args:
            access_token: Member's bearer token
            date_range: Inclusive range, date granularity
            page: 1-based page number

        Returns:
            ResultsPage including pagination metadata
        """
        pass

    @abstractmethod
    async def get_all_results(
        self,
        access_token: str,
        date_range: DateRange,
    ) -> list[WorkoutResult]:
        """
        Retrieve every result within a date range.

        Note:
            Implementations handle pagination internally and return the
            results of all pages concatenated in page order.
        """
        pass

    async def close(self) -> None:
        """
        Clean up resources (e.g., close HTTP sessions).

        Override this if the data source holds resources that need cleanup.
        """
        pass
