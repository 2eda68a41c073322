"""Bearer token authentication for the sObject API.

Exchanges username/password credentials for an access token through the
OAuth2 password grant, keeps the token in memory and re-authenticates lazily
when a request needs a token and the current one has expired.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import httpx
from pydantic import ValidationError

from ..config import ClientConfig
from .errors import AuthenticationError, TransportError
from .models import OAuthErrorResponse, TokenResponse


TOKEN_ENDPOINT_PATH = "/services/oauth2/token"
DEFAULT_TOKEN_LIFETIME_SECONDS = 3600


@dataclass
class TokenState:
    """Access token with its locally computed expiry."""

    access_token: str
    token_type: str
    expires_at: datetime
    signature: Optional[str] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """True strictly after expires_at."""
        now = now or datetime.now(timezone.utc)
        return now > self.expires_at

    @property
    def authorization(self) -> str:
        return f"{self.token_type} {self.access_token}"


class Authenticator:
    """Manages the token lifecycle: no token, valid token, expired token."""

    def __init__(
        self,
        config: ClientConfig,
        token_lifetime: int = DEFAULT_TOKEN_LIFETIME_SECONDS,
        logger: Optional[logging.Logger] = None,
    ):
        """Initialize authenticator.

        Args:
            config: Host and credentials used for the password grant
            token_lifetime: Seconds a freshly issued token is trusted for
            logger: Logger to report token exchanges to
        """
        self.config = config
        self.token_lifetime = token_lifetime
        self.logger = logger or logging.getLogger(__name__)
        self._token: Optional[TokenState] = None
        self._lock = asyncio.Lock()

    @property
    def token_endpoint(self) -> str:
        return f"{self.config.host}{TOKEN_ENDPOINT_PATH}"

    @property
    def token(self) -> Optional[TokenState]:
        return self._token

    def invalidate(self) -> None:
        """Forget the current token so the next request re-authenticates."""
        self._token = None

    async def get_token(self, session: httpx.AsyncClient) -> TokenState:
        """Return a valid token, exchanging credentials if needed.

        Concurrent callers waiting on an expired token share one exchange.

        Raises:
            AuthenticationError: If the token endpoint rejects the credentials
            TransportError: If the token endpoint cannot be reached
        """
        async with self._lock:
            if self._token is None:
                self.logger.debug("No token yet, authenticating...")
            elif self._token.is_expired():
                self.logger.info("Access token expired, re-authenticating")
            else:
                return self._token

            self._token = await self._exchange_token(session)
            return self._token

    async def authorization_header(self, session: httpx.AsyncClient) -> str:
        token = await self.get_token(session)
        return token.authorization

    async def _exchange_token(self, session: httpx.AsyncClient) -> TokenState:
        form = {
            "grant_type": "password",
            "client_id": self.config.client_id,
            "client_secret": self.config.client_secret,
            "username": self.config.username,
            "password": self.config.password,
        }

        try:
            response = await session.post(self.token_endpoint, data=form)
        except httpx.HTTPError as e:
            raise TransportError(f"Token request to {self.token_endpoint} failed: {e}") from e

        if response.status_code != 200:
            raise self._auth_error_from_response(response)

        try:
            token_response = TokenResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise AuthenticationError(
                f"Authentication failed: undecodable token response: {e}",
                response.status_code,
            ) from e

        expires_at = datetime.now(timezone.utc) + timedelta(seconds=self.token_lifetime)
        self.logger.info(
            f"Access token acquired, valid for {self.token_lifetime}s "
            f"(until {expires_at.isoformat()})"
        )
        return TokenState(
            access_token=token_response.access_token,
            token_type=token_response.token_type,
            expires_at=expires_at,
            signature=token_response.signature,
        )

    def _auth_error_from_response(self, response: httpx.Response) -> AuthenticationError:
        try:
            oauth_error = OAuthErrorResponse.model_validate(response.json())
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError):
            self.logger.warning(
                f"Token endpoint returned HTTP {response.status_code} with an "
                "undecodable body"
            )
            return AuthenticationError(
                f"Authentication failed: HTTP {response.status_code}",
                response.status_code,
            )

        self.logger.warning(
            f"Token endpoint rejected credentials: {oauth_error.error}"
        )
        return AuthenticationError(
            f"OAuth fail({oauth_error.error}): {oauth_error.error_description}",
            response.status_code,
            error=oauth_error.error,
            error_description=oauth_error.error_description,
        )
