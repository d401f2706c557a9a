"""API routes for the leaderboard service."""

import logging
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from fastapi.responses import RedirectResponse

from ergboard.errors import ErgboardError
from ergboard.models import (
    LeaderboardEntry,
    Member,
    ProfileResponse,
    ProfileUpdate,
    WeeklySummary,
)
from ergboard.services import (
    LeaderboardService,
    LinkService,
    ProfileService,
    WeeklySummaryService,
)
from ergboard.utils.gender import GenderFilter
from .dependencies import (
    Services,
    get_current_member,
    get_leaderboard_service,
    get_link_service,
    get_profile_service,
    get_services,
    get_weekly_summary_service,
    require_admin,
    require_webhook_secret,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1")

STATE_COOKIE = "concept2_oauth_state"
STATE_COOKIE_MAX_AGE = 600


@router.get("/leaderboard", response_model=list[LeaderboardEntry])
async def get_leaderboard(
    response: Response,
    period: str = Query(
        "week",
        description="Time window: week, month, year or custom",
        example="week"
    ),
    from_: Optional[str] = Query(
        None,
        alias="from",
        description="Start date for custom periods (YYYY-MM-DD)",
        example="2025-01-01"
    ),
    to: Optional[str] = Query(
        None,
        description="End date for custom periods (YYYY-MM-DD)",
        example="2025-01-31"
    ),
    refresh: bool = Query(
        False,
        description="Bypass the cache and recompute"
    ),
    gender: GenderFilter = Query(
        GenderFilter.ALL,
        description="Gender filter: all, male or female"
    ),
    member: Member = Depends(get_current_member),
    service: LeaderboardService = Depends(get_leaderboard_service),
) -> list[LeaderboardEntry]:
    """
    Get the leaderboard ranked by total meters.

    Returns ranked list: rank, discordName, totalMeters, workoutCount,
    totalHours, totalCalories, lastWorkout. An empty list means there is
    no data for the period.
    """
    result = await service.get_leaderboard(
        period=period,
        from_=from_,
        to=to,
        force_refresh=refresh,
        gender=gender,
    )

    if result.skipped is not None:
        response.headers["X-Skipped-Members"] = str(len(result.skipped))

    return result.entries


@router.post("/leaderboard/cache/clear", dependencies=[Depends(require_admin)])
async def clear_leaderboard_cache(
    service: LeaderboardService = Depends(get_leaderboard_service),
) -> dict:
    """Drop every cached leaderboard."""
    service.clear_cache()
    return {"success": True, "message": "Cache cleared"}


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(
    member: Member = Depends(get_current_member),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    return await service.get_profile(member)


@router.patch("/profile", response_model=ProfileResponse)
async def update_profile(
    update: ProfileUpdate,
    member: Member = Depends(get_current_member),
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    """
    Update display name and/or leaderboard visibility.
    """
    profile = await service.update_profile(member, update)
    if profile is None:
        raise HTTPException(status_code=404, detail="User not found")
    return profile


@router.post("/profile/unlink-concept2")
async def unlink_concept2(
    member: Member = Depends(get_current_member),
    service: ProfileService = Depends(get_profile_service),
) -> dict:
    await service.unlink_concept2(member)
    return {"success": True}


@router.get("/auth/concept2/link")
async def start_concept2_link(
    member: Member = Depends(get_current_member),
    service: LinkService = Depends(get_link_service),
) -> RedirectResponse:
    """Redirect to Concept2 to authorize read access to the logbook."""
    state, url = service.start_link()
    response = RedirectResponse(url, status_code=302)
    response.set_cookie(
        STATE_COOKIE,
        state,
        max_age=STATE_COOKIE_MAX_AGE,
        httponly=True,
        samesite="lax",
    )
    return response


@router.get("/auth/concept2/callback")
async def concept2_callback(
    request: Request,
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    error: Optional[str] = Query(None),
    member: Member = Depends(get_current_member),
    service: LinkService = Depends(get_link_service),
    services: Services = Depends(get_services),
) -> RedirectResponse:
    """Finish linking and send the member back to the app."""
    app_url = services.config.app_url.rstrip("/")

    def redirect(path: str) -> RedirectResponse:
        response = RedirectResponse(f"{app_url}{path}", status_code=302)
        response.delete_cookie(STATE_COOKIE)
        return response

    if error:
        logger.error(f"Concept2 OAuth error: {error}")
        return redirect(f"/onboarding?error={quote(error)}")

    if not code or not state:
        return redirect("/onboarding?error=missing_parameters")

    stored_state = request.cookies.get(STATE_COOKIE)
    if not stored_state or stored_state != state:
        return redirect("/onboarding?error=invalid_state")

    try:
        await service.complete_link(member.id, code)
    except ErgboardError as e:
        logger.error(f"Error linking Concept2 account for member {member.id}: {e}")
        return redirect("/onboarding?error=token_exchange_failed")

    return redirect("/?linked=true")


@router.api_route(
    "/discord/weekly-summary",
    methods=["GET", "POST"],
    response_model=WeeklySummary,
    dependencies=[Depends(require_webhook_secret)],
)
async def send_weekly_summary(
    service: WeeklySummaryService = Depends(get_weekly_summary_service),
) -> WeeklySummary:
    """
    Post last week's top rowers to Discord.

    Called by the scheduler; also usable as a manual trigger with
    ``?token=<secret>``.
    """
    return await service.send_weekly_summary()
