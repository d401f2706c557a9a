"""Concept2 OAuth client for code exchange and token refresh."""

import logging
from typing import Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError as PydanticValidationError

from ergboard.errors import ExternalApiError, TokenRefreshError
from ergboard.models import TokenResponse

logger = logging.getLogger(__name__)

AUTHORIZE_URL = "https://log.concept2.com/oauth/authorize"
TOKEN_URL = "https://log.concept2.com/oauth/access_token"
SCOPE = "user:read,results:read"
REQUEST_TIMEOUT = 10.0


class Concept2OAuthClient:
    """Form-encoded OAuth calls against the Concept2 token endpoint."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str = "",
        token_url: str = TOKEN_URL,
        authorize_url: str = AUTHORIZE_URL,
        request_timeout: float = REQUEST_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.token_url = token_url
        self.authorize_url = authorize_url
        self.request_timeout = request_timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.request_timeout,
                transport=self._transport,
            )
        return self._client

    def authorization_url(self, state: str) -> str:
        """Build the URL that starts the authorization-code flow."""
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": SCOPE,
            "state": state,
        }
        return f"{self.authorize_url}?{urlencode(params)}"

    async def _post_token(self, form: dict) -> httpx.Response:
        client = await self._get_client()
        return await client.post(
            self.token_url,
            data=form,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )

    async def exchange_code(self, code: str) -> TokenResponse:
        """
        Exchange an authorization code for access and refresh tokens.

        Raises:
            ExternalApiError: token endpoint rejected the code or returned
                an unexpected payload
        """
        response = await self._post_token({
            "grant_type": "authorization_code",
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
        })

        if response.is_error:
            raise ExternalApiError(response.status_code, response.text, "oauth/access_token")

        try:
            return TokenResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            raise ExternalApiError(response.status_code, f"Invalid token payload: {e}", "oauth/access_token") from e

    async def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        """
        Refresh an expired access token.

        Raises:
            TokenRefreshError: grant rejected, network failure, or a
                malformed token payload
        """
        try:
            response = await self._post_token({
                "grant_type": "refresh_token",
                "refresh_token": refresh_token,
                "client_id": self.client_id,
                "client_secret": self.client_secret,
                "scope": SCOPE,
            })
        except httpx.HTTPError as e:
            raise TokenRefreshError(f"Token refresh request failed: {e}") from e

        if response.is_error:
            raise TokenRefreshError(
                f"Failed to refresh token ({response.status_code}): {response.text}"
            )

        try:
            return TokenResponse.model_validate(response.json())
        except (ValueError, PydanticValidationError) as e:
            raise TokenRefreshError(f"Invalid token payload: {e}") from e

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
