import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from ergboard.app import create_app
from ergboard.config import Config
from ergboard.errors import ExternalApiError
from ergboard.models import Concept2User
from ergboard.stores import InMemoryMemberDirectory
from tests.conftest import StubOAuthClient, StubResultsSource, add_member, make_result

ADMIN_TOKEN = "admin-secret"
WEBHOOK_SECRET = "cron-secret"


class UnreachableDirectory(InMemoryMemberDirectory):
    async def list_visible_members_with_external_link(self):
        raise ConnectionError("database unreachable")


def make_config() -> Config:
    return Config(
        admin_token=ADMIN_TOKEN,
        webhook_secret=WEBHOOK_SECRET,
        app_url="https://club.test",
    )


@pytest.fixture
def results_source() -> StubResultsSource:
    return StubResultsSource(
        results={
            "token-a": [make_result("1", distance=5000, time=12000), make_result("2", distance=3000, time=6000)],
            "token-b": [make_result("3", distance=10000, time=24000)],
        },
        profile=Concept2User(user_id="777", gender="F"),
    )


@pytest.fixture
def oauth_client() -> StubOAuthClient:
    return StubOAuthClient()


@pytest_asyncio.fixture
async def seeded(member_directory, token_store):
    await add_member(member_directory, token_store, "a", name="Alice", gender="F")
    await add_member(member_directory, token_store, "b", name="Bob", gender="M")
    await add_member(member_directory, token_store, "new", name="Newcomer", linked=False)
    return member_directory


@pytest_asyncio.fixture
async def client(seeded, token_store, results_source, oauth_client):
    app = create_app(
        make_config(),
        member_directory=seeded,
        token_store=token_store,
        results_source=results_source,
        oauth_client=oauth_client,
    )
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as client:
        yield client


AS_ALICE = {"X-Member-Id": "a"}


@pytest.mark.asyncio
async def test_health(client):
    response = await client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


@pytest.mark.asyncio
async def test_leaderboard_requires_member(client):
    response = await client.get("/v1/leaderboard")
    assert response.status_code == 401

    response = await client.get("/v1/leaderboard", headers={"X-Member-Id": "stranger"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_leaderboard(client, results_source):
    response = await client.get("/v1/leaderboard", headers=AS_ALICE)

    assert response.status_code == 200
    body = response.json()
    assert [row["discordName"] for row in body] == ["Bob", "Alice"]
    assert [row["rank"] for row in body] == [1, 2]
    assert body[1]["totalMeters"] == 8000
    assert isinstance(body[1]["totalMeters"], int)
    assert body[1]["workoutCount"] == 2
    assert body[1]["totalHours"] == pytest.approx(0.5)
    assert response.headers["X-Skipped-Members"] == "0"
    assert sorted(results_source.calls) == ["token-a", "token-b"]


@pytest.mark.asyncio
async def test_leaderboard_is_cached_until_refresh(client, results_source):
    await client.get("/v1/leaderboard", headers=AS_ALICE)
    cached = await client.get("/v1/leaderboard", headers=AS_ALICE)
    assert len(results_source.calls) == 2
    assert "X-Skipped-Members" not in cached.headers

    await client.get("/v1/leaderboard", params={"refresh": "true"}, headers=AS_ALICE)
    assert len(results_source.calls) == 4


@pytest.mark.asyncio
async def test_gender_filter(client):
    response = await client.get("/v1/leaderboard", params={"gender": "female"}, headers=AS_ALICE)

    assert [(row["discordName"], row["rank"]) for row in response.json()] == [("Alice", 1)]


@pytest.mark.asyncio
@pytest.mark.parametrize("params", [
    {"period": "custom", "from": "2025-02-01", "to": "2025-01-01"},
    {"period": "custom", "from": "2025-02-01"},
    {"period": "custom"},
    {"period": "forever"},
])
async def test_invalid_query_is_400_without_fetching(client, results_source, params):
    response = await client.get("/v1/leaderboard", params=params, headers=AS_ALICE)

    assert response.status_code == 400
    assert "error" in response.json()
    assert results_source.calls == []


@pytest.mark.asyncio
async def test_custom_range(client):
    response = await client.get(
        "/v1/leaderboard",
        params={"period": "custom", "from": "2025-01-01", "to": "2025-01-31"},
        headers=AS_ALICE,
    )
    assert response.status_code == 200
    assert len(response.json()) == 2


@pytest.mark.asyncio
async def test_no_data_is_empty_list(token_store, oauth_client):
    directory = InMemoryMemberDirectory(token_store)
    await add_member(directory, token_store, "a", linked=False)
    app = create_app(
        make_config(),
        member_directory=directory,
        token_store=token_store,
        results_source=StubResultsSource(),
        oauth_client=oauth_client,
    )

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        response = await client.get("/v1/leaderboard", headers=AS_ALICE)

    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_member_failures_are_hidden(token_store, oauth_client):
    directory = InMemoryMemberDirectory(token_store)
    await add_member(directory, token_store, "a")
    await add_member(directory, token_store, "b")
    source = StubResultsSource(
        results={"token-a": [make_result("1")]},
        errors={"token-b": ExternalApiError(500, "boom")},
    )
    app = create_app(
        make_config(),
        member_directory=directory,
        token_store=token_store,
        results_source=source,
        oauth_client=oauth_client,
    )

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        response = await client.get("/v1/leaderboard", headers=AS_ALICE)

    assert response.status_code == 200
    assert [row["userId"] for row in response.json()] == ["a"]
    assert response.headers["X-Skipped-Members"] == "1"


@pytest.mark.asyncio
async def test_systemic_failure_is_503(token_store, oauth_client):
    directory = UnreachableDirectory(token_store)
    await add_member(directory, token_store, "a")
    app = create_app(
        make_config(),
        member_directory=directory,
        token_store=token_store,
        results_source=StubResultsSource(),
        oauth_client=oauth_client,
    )

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        response = await client.get("/v1/leaderboard", headers=AS_ALICE)

    assert response.status_code == 503
    assert response.json() == {"error": "Leaderboard temporarily unavailable"}


@pytest.mark.asyncio
async def test_cache_clear_requires_admin(client, results_source):
    await client.get("/v1/leaderboard", headers=AS_ALICE)

    response = await client.post("/v1/leaderboard/cache/clear")
    assert response.status_code == 403

    response = await client.post(
        "/v1/leaderboard/cache/clear",
        headers={"Authorization": "Bearer wrong"},
    )
    assert response.status_code == 403

    response = await client.post(
        "/v1/leaderboard/cache/clear",
        headers={"Authorization": f"Bearer {ADMIN_TOKEN}"},
    )
    assert response.status_code == 200
    assert response.json()["success"] is True

    await client.get("/v1/leaderboard", headers=AS_ALICE)
    assert len(results_source.calls) == 4


@pytest.mark.asyncio
async def test_profile_roundtrip(client):
    response = await client.get("/v1/profile", headers=AS_ALICE)
    assert response.status_code == 200
    assert response.json() == {
        "displayName": None,
        "discordName": "Alice",
        "showOnLeaderboard": True,
        "gender": "F",
        "hasConcept2Linked": True,
    }

    response = await client.patch(
        "/v1/profile",
        json={"displayName": "Captain Alice", "showOnLeaderboard": False},
        headers=AS_ALICE,
    )
    assert response.status_code == 200
    assert response.json()["displayName"] == "Captain Alice"
    assert response.json()["showOnLeaderboard"] is False


@pytest.mark.asyncio
async def test_hidden_member_leaves_leaderboard(client):
    await client.patch("/v1/profile", json={"showOnLeaderboard": False}, headers=AS_ALICE)

    response = await client.get("/v1/leaderboard", params={"refresh": "1"}, headers=AS_ALICE)

    assert [row["userId"] for row in response.json()] == ["b"]


@pytest.mark.asyncio
async def test_profile_rejects_long_display_name(client):
    response = await client.patch("/v1/profile", json={"displayName": "x" * 51}, headers=AS_ALICE)
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_unlink_removes_member_from_leaderboard(client, token_store):
    response = await client.post("/v1/profile/unlink-concept2", headers=AS_ALICE)
    assert response.status_code == 200
    assert await token_store.get("a") is None

    response = await client.get("/v1/leaderboard", params={"refresh": "1"}, headers=AS_ALICE)
    assert [row["userId"] for row in response.json()] == ["b"]


@pytest.mark.asyncio
async def test_link_redirects_with_state_cookie(client):
    response = await client.get("/v1/auth/concept2/link", headers={"X-Member-Id": "new"})

    assert response.status_code == 302
    assert response.headers["location"].startswith("https://auth.test/oauth/authorize?state=")
    assert "concept2_oauth_state=" in response.headers["set-cookie"]


@pytest.mark.asyncio
async def test_callback_rejects_state_mismatch(client, token_store):
    response = await client.get(
        "/v1/auth/concept2/callback",
        params={"code": "abc", "state": "expected"},
        headers={"X-Member-Id": "new", "Cookie": "concept2_oauth_state=other"},
    )

    assert response.status_code == 302
    assert response.headers["location"] == "https://club.test/onboarding?error=invalid_state"
    assert await token_store.get("new") is None


@pytest.mark.asyncio
async def test_callback_links_account_and_backfills_gender(client, token_store, seeded, oauth_client):
    response = await client.get(
        "/v1/auth/concept2/callback",
        params={"code": "abc", "state": "s1"},
        headers={"X-Member-Id": "new", "Cookie": "concept2_oauth_state=s1"},
    )

    assert response.status_code == 302
    assert response.headers["location"] == "https://club.test/?linked=true"
    assert oauth_client.exchange_calls == ["abc"]
    credential = await token_store.get("new")
    assert credential.access_token == "new-access"
    assert credential.external_user_id == "777"
    assert (await seeded.get_member("new")).gender == "F"


@pytest.mark.asyncio
async def test_callback_keeps_existing_gender(client, seeded):
    await seeded.set_gender("new", "M")

    await client.get(
        "/v1/auth/concept2/callback",
        params={"code": "abc", "state": "s1"},
        headers={"X-Member-Id": "new", "Cookie": "concept2_oauth_state=s1"},
    )

    assert (await seeded.get_member("new")).gender == "M"


@pytest.mark.asyncio
async def test_callback_exchange_failure(token_store, seeded, results_source):
    app = create_app(
        make_config(),
        member_directory=seeded,
        token_store=token_store,
        results_source=results_source,
        oauth_client=StubOAuthClient(error=RuntimeError("rejected")),
    )

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as client:
        response = await client.get(
            "/v1/auth/concept2/callback",
            params={"code": "abc", "state": "s1"},
            headers={"X-Member-Id": "new", "Cookie": "concept2_oauth_state=s1"},
        )

    assert response.headers["location"] == "https://club.test/onboarding?error=token_exchange_failed"
    assert await token_store.get("new") is None


@pytest.mark.asyncio
async def test_weekly_summary_requires_secret(client):
    response = await client.post("/v1/discord/weekly-summary")
    assert response.status_code == 401

    response = await client.post("/v1/discord/weekly-summary", params={"token": "nope"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_weekly_summary_without_webhook_url(client):
    response = await client.post(
        "/v1/discord/weekly-summary",
        headers={"Authorization": f"Bearer {WEBHOOK_SECRET}"},
    )

    assert response.status_code == 500
    assert response.json() == {"error": "Discord webhook URL not configured"}
