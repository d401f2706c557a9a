"""FastAPI dependencies for dependency injection."""

import secrets
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, FastAPI, Header, HTTPException, Query, Request

from ergboard.config import Config
from ergboard.models import Member
from ergboard.services import (
    LeaderboardService,
    LinkService,
    ProfileService,
    WeeklySummaryService,
)
from ergboard.stores import MemberDirectory


@dataclass
class Services:
    """Per-application service graph, built once at app creation."""
    config: Config
    member_directory: MemberDirectory
    leaderboard: LeaderboardService
    profile: ProfileService
    link: LinkService
    weekly_summary: WeeklySummaryService


def set_services(app: FastAPI, services: Services) -> None:
    """Attach the service graph to an application."""
    app.state.services = services


def get_services(request: Request) -> Services:
    """Get the service graph of the running application."""
    services = getattr(request.app.state, "services", None)
    if services is None:
        raise RuntimeError("Services not initialized. Call set_services() first.")
    return services


def get_leaderboard_service(services: Services = Depends(get_services)) -> LeaderboardService:
    return services.leaderboard


def get_profile_service(services: Services = Depends(get_services)) -> ProfileService:
    return services.profile


def get_link_service(services: Services = Depends(get_services)) -> LinkService:
    return services.link


def get_weekly_summary_service(services: Services = Depends(get_services)) -> WeeklySummaryService:
    return services.weekly_summary


async def get_current_member(
    x_member_id: Optional[str] = Header(None, description="Signed-in member id"),
    services: Services = Depends(get_services),
) -> Member:
    """
    Resolve the signed-in member.

    The session layer in front of this service sets ``X-Member-Id``
    after Discord sign-in and guild membership checks.
    """
    if not x_member_id:
        raise HTTPException(status_code=401, detail="Unauthorized")

    member = await services.member_directory.get_member(x_member_id)
    if member is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    return member


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if authorization and authorization.startswith("Bearer "):
        return authorization[len("Bearer "):]
    return None


def _secret_matches(candidate: Optional[str], secret: str) -> bool:
    return bool(secret) and candidate is not None and secrets.compare_digest(candidate, secret)


def require_admin(
    authorization: Optional[str] = Header(None),
    services: Services = Depends(get_services),
) -> None:
    """Allow only callers presenting the configured admin token."""
    if not _secret_matches(_bearer_token(authorization), services.config.admin_token):
        raise HTTPException(status_code=403, detail="Forbidden")


def require_webhook_secret(
    authorization: Optional[str] = Header(None),
    token: Optional[str] = Query(None, description="Webhook secret for manual triggers"),
    services: Services = Depends(get_services),
) -> None:
    """Allow the scheduler via a Bearer header or a ``token`` query parameter."""
    secret = services.config.webhook_secret
    if not (_secret_matches(_bearer_token(authorization), secret) or _secret_matches(token, secret)):
        raise HTTPException(status_code=401, detail="Unauthorized")
