"""Application configuration."""

import os
from dataclasses import dataclass
from typing import Optional


@dataclass
class Config:
    """Application configuration loaded from environment variables."""

    # API settings
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "INFO"

    # Concept2 Logbook API
    concept2_api_url: str = "https://log.concept2.com/api"
    concept2_token_url: str = "https://log.concept2.com/oauth/access_token"
    concept2_authorize_url: str = "https://log.concept2.com/oauth/authorize"
    concept2_client_id: str = ""
    concept2_client_secret: str = ""
    concept2_redirect_uri: str = ""

    # Leaderboard aggregation
    cache_ttl_seconds: int = 300
    max_concurrent_fetches: int = 10
    # Whole-member deadline, unset by default; requests use request_timeout
    member_fetch_timeout: Optional[float] = None
    request_timeout: float = 10.0
    page_delay: float = 0.1

    # Privileged operations and the weekly Discord post
    admin_token: str = ""
    webhook_secret: str = ""
    discord_webhook_url: str = ""
    app_url: str = "http://localhost:8000"

    @classmethod
    def from_env(cls) -> "Config":
        """Load configuration from environment variables."""
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8000")),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            concept2_api_url=os.getenv(
                "CONCEPT2_API_URL",
                "https://log.concept2.com/api"
            ),
            concept2_token_url=os.getenv(
                "CONCEPT2_TOKEN_URL",
                "https://log.concept2.com/oauth/access_token"
            ),
            concept2_authorize_url=os.getenv(
                "CONCEPT2_AUTHORIZE_URL",
                "https://log.concept2.com/oauth/authorize"
            ),
            concept2_client_id=os.getenv("CONCEPT2_CLIENT_ID", ""),
            concept2_client_secret=os.getenv("CONCEPT2_CLIENT_SECRET", ""),
            concept2_redirect_uri=os.getenv("CONCEPT2_REDIRECT_URI", ""),
            cache_ttl_seconds=int(os.getenv("CACHE_TTL_SECONDS", "300")),
            max_concurrent_fetches=int(os.getenv("MAX_CONCURRENT_FETCHES", "10")),
            member_fetch_timeout=(
                float(os.environ["MEMBER_FETCH_TIMEOUT"])
                if os.getenv("MEMBER_FETCH_TIMEOUT") else None
            ),
            request_timeout=float(os.getenv("REQUEST_TIMEOUT", "10.0")),
            page_delay=float(os.getenv("PAGE_DELAY", "0.1")),
            admin_token=os.getenv("ADMIN_TOKEN", ""),
            webhook_secret=os.getenv("WEBHOOK_SECRET", ""),
            discord_webhook_url=os.getenv("DISCORD_WEBHOOK_URL", ""),
            app_url=os.getenv("APP_URL", "http://localhost:8000"),
        )
