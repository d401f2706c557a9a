import asyncio
from typing import Optional

import pytest

from ergboard.datasources import ResultsSource
from ergboard.errors import ExternalApiError
from ergboard.models import (
    Concept2User,
    DateRange,
    ExternalCredential,
    Member,
    ResultsPage,
    TokenResponse,
    WorkoutResult,
)
from ergboard.stores import InMemoryMemberDirectory, InMemoryTokenStore

NOW = 1_700_000_000
FAR_FUTURE = 4_102_444_800


def make_result(
    result_id: str = "1",
    distance: float = 1000,
    time: Optional[float] = 3000,
    date: str = "2025-01-06 08:00:00",
    calories: Optional[float] = None,
    user_id: str = "42",
) -> WorkoutResult:
    return WorkoutResult(
        id=result_id,
        user_id=user_id,
        date=date,
        distance=distance,
        type="rower",
        time=time,
        calories_total=calories,
    )


def results_payload(data: list[dict], page: int, total_pages: int) -> dict:
    return {
        "data": data,
        "meta": {
            "pagination": {
                "total": len(data) * total_pages,
                "count": len(data),
                "per_page": 50,
                "current_page": page,
                "total_pages": total_pages,
            }
        },
    }


class StubResultsSource(ResultsSource):
    """Results keyed by access token, with optional per-token errors and delays."""

    def __init__(
        self,
        results: Optional[dict[str, list[WorkoutResult]]] = None,
        errors: Optional[dict[str, Exception]] = None,
        delays: Optional[dict[str, float]] = None,
        profile: Optional[Concept2User] = None,
    ):
        self.results = results or {}
        self.errors = errors or {}
        self.delays = delays or {}
        self.profile = profile or Concept2User(user_id="42", gender="F")
        self.calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def get_user(self, access_token: str) -> Concept2User:
        return self.profile

    async def get_results(self, access_token: str, date_range: DateRange, page: int = 1) -> ResultsPage:
        data = await self.get_all_results(access_token, date_range)
        return ResultsPage.model_validate(
            results_payload([r.model_dump() for r in data], page=1, total_pages=1)
        )

    async def get_all_results(self, access_token: str, date_range: DateRange) -> list[WorkoutResult]:
        self.calls.append(access_token)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(access_token, 0))
            if access_token in self.errors:
                raise self.errors[access_token]
            return list(self.results.get(access_token, []))
        finally:
            self.in_flight -= 1


class StubOAuthClient:
    """Stands in for Concept2OAuthClient."""

    def __init__(
        self,
        response: Optional[TokenResponse] = None,
        error: Optional[Exception] = None,
    ):
        self.response = response or TokenResponse(
            access_token="new-access",
            refresh_token="new-refresh",
            expires_in=7200,
            token_type="Bearer",
        )
        self.error = error
        self.refresh_calls: list[str] = []
        self.exchange_calls: list[str] = []

    def authorization_url(self, state: str) -> str:
        return f"https://auth.test/oauth/authorize?state={state}"

    async def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        self.refresh_calls.append(refresh_token)
        if self.error is not None:
            raise self.error
        return self.response

    async def exchange_code(self, code: str) -> TokenResponse:
        self.exchange_calls.append(code)
        if self.error is not None:
            raise ExternalApiError(400, "invalid_grant", "oauth/access_token")
        return self.response

    async def close(self) -> None:
        pass


@pytest.fixture
def token_store() -> InMemoryTokenStore:
    return InMemoryTokenStore()


@pytest.fixture
def member_directory(token_store) -> InMemoryMemberDirectory:
    return InMemoryMemberDirectory(token_store)


async def add_member(
    directory: InMemoryMemberDirectory,
    token_store: InMemoryTokenStore,
    member_id: str,
    name: Optional[str] = None,
    gender: Optional[str] = None,
    visible: bool = True,
    linked: bool = True,
    expires_at: int = FAR_FUTURE,
) -> Member:
    member = Member(
        id=member_id,
        discord_id=f"discord-{member_id}",
        discord_name=name or f"Rower {member_id}",
        gender=gender,
        show_on_leaderboard=visible,
    )
    await directory.upsert_member(member)
    if linked:
        await token_store.upsert(member_id, ExternalCredential(
            access_token=f"token-{member_id}",
            refresh_token=f"refresh-{member_id}",
            expires_at=expires_at,
            external_user_id=f"c2-{member_id}",
        ))
    return member
