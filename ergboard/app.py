"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from ergboard.config import Config
from ergboard.datasources import Concept2DataSource, Concept2OAuthClient, ResultsSource
from ergboard.errors import ConfigurationError, ExternalApiError, SystemicError, ValidationError
from ergboard.api import router
from ergboard.api.dependencies import Services, set_services
from ergboard.services import (
    LeaderboardAggregator,
    LeaderboardCache,
    LeaderboardService,
    LinkService,
    ProfileService,
    TokenService,
    WeeklySummaryService,
)
from ergboard.stores import InMemoryMemberDirectory, InMemoryTokenStore, MemberDirectory, TokenStore

logger = logging.getLogger(__name__)


def build_services(
    config: Config,
    member_directory: MemberDirectory,
    token_store: TokenStore,
    results_source: ResultsSource,
    oauth_client: Concept2OAuthClient,
    cache: Optional[LeaderboardCache] = None,
    webhook_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Services:
    """Wire the service graph from its collaborators."""
    token_service = TokenService(token_store, oauth_client)
    aggregator = LeaderboardAggregator(
        member_directory=member_directory,
        token_service=token_service,
        results_source=results_source,
        max_concurrent_fetches=config.max_concurrent_fetches,
        member_fetch_timeout=config.member_fetch_timeout,
    )
    return Services(
        config=config,
        member_directory=member_directory,
        leaderboard=LeaderboardService(
            aggregator,
            cache if cache is not None else LeaderboardCache(),
            ttl_seconds=config.cache_ttl_seconds,
        ),
        profile=ProfileService(member_directory, token_store),
        link=LinkService(member_directory, token_store, oauth_client, results_source),
        weekly_summary=WeeklySummaryService(
            aggregator,
            webhook_url=config.discord_webhook_url,
            app_url=config.app_url,
            transport=webhook_transport,
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain errors to HTTP responses."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"error": str(exc)})

    @app.exception_handler(SystemicError)
    async def systemic_error_handler(request: Request, exc: SystemicError):
        logger.error(f"Systemic failure on {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(status_code=503, content={"error": "Leaderboard temporarily unavailable"})

    @app.exception_handler(ExternalApiError)
    async def external_api_error_handler(request: Request, exc: ExternalApiError):
        logger.error(f"Upstream error on {request.url.path}: {exc}")
        return JSONResponse(status_code=502, content={"error": "Upstream service error"})

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(request: Request, exc: ConfigurationError):
        logger.error(f"Configuration error on {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"error": str(exc)})


def create_app(
    config: Config | None = None,
    member_directory: MemberDirectory | None = None,
    token_store: TokenStore | None = None,
    results_source: ResultsSource | None = None,
    oauth_client: Concept2OAuthClient | None = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Application configuration. If None, loads from environment.
        member_directory: Member store. Defaults to an in-memory directory.
        token_store: Credential store. Defaults to an in-memory store.
        results_source: Workout data source. Defaults to the Concept2 API.
        oauth_client: OAuth client. Defaults to one built from config.

    Returns:
        Configured FastAPI application
    """
    if config is None:
        config = Config.from_env()

    if token_store is None:
        token_store = InMemoryTokenStore()
    if member_directory is None:
        if not isinstance(token_store, InMemoryTokenStore):
            raise ValueError("A member directory is required with a custom token store")
        member_directory = InMemoryMemberDirectory(token_store)

    # Create datasources
    if results_source is None:
        results_source = Concept2DataSource(
            api_url=config.concept2_api_url,
            request_timeout=config.request_timeout,
            page_delay=config.page_delay,
        )
    if oauth_client is None:
        oauth_client = Concept2OAuthClient(
            client_id=config.concept2_client_id,
            client_secret=config.concept2_client_secret,
            redirect_uri=config.concept2_redirect_uri,
            token_url=config.concept2_token_url,
            authorize_url=config.concept2_authorize_url,
            request_timeout=config.request_timeout,
        )

    services = build_services(config, member_directory, token_store, results_source, oauth_client)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler for startup/shutdown."""
        # Startup
        logger.info("Starting rowing leaderboard API")
        logger.info(f"Using Concept2 API: {config.concept2_api_url}")
        logger.info(
            f"Aggregation: {config.max_concurrent_fetches} concurrent fetches, "
            f"{config.request_timeout}s per request, cache TTL {config.cache_ttl_seconds}s"
        )

        yield

        # Shutdown
        logger.info("Shutting down...")
        services.leaderboard.clear_cache()
        await results_source.close()
        await oauth_client.close()

    app = FastAPI(
        title="Rowing Club Leaderboard API",
        description="Concept2 meters, time and calories aggregated across club members",
        version="1.0.0",
        lifespan=lifespan,
    )

    set_services(app, services)
    register_exception_handlers(app)

    # Include API routes
    app.include_router(router)

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app
