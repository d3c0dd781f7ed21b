"""OAuth2 client-credentials token lifecycle for OPS."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

import httpx

from patent_ops.core.errors import AuthenticationError

logger = logging.getLogger("TokenManager")

# Refresh tokens this many seconds before their real expiry
EXPIRY_BUFFER_SECONDS = 300
DEFAULT_EXPIRES_IN_SECONDS = 1200
GRANT_SCOPE = "ops"


@dataclass(frozen=True)
class AccessToken:
    """
    OPS access token with issuance tracking.

    Attributes:
        value: The bearer token string
        token_type: Token type (OPS answers "BearerToken"; sent as "Bearer")
        expires_in_seconds: Lifetime granted by the token endpoint
        issued_at: Epoch seconds when the token was obtained
        scope: Granted scope, if reported
    """

    value: str = field(repr=False)
    token_type: str
    expires_in_seconds: int
    issued_at: float
    scope: Optional[str] = None

    @property
    def expires_at(self) -> float:
        return self.issued_at + self.expires_in_seconds

    @property
    def authorization_header(self) -> str:
        """The `Authorization` header value carrying this token."""
        return f"Bearer {self.value}"

    def is_expired(self, now: float, buffer_seconds: int = EXPIRY_BUFFER_SECONDS) -> bool:
        """True once `now` is inside the safety buffer before expiry."""
        return now >= self.expires_at - buffer_seconds


class TokenManager:
    """
    Owns the OPS access token.

    Tokens are acquired lazily and replaced when they enter the expiry buffer.
    At most one grant request is in flight: callers that find the token
    expired while a grant is running await that same grant.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        consumer_key: str,
        consumer_secret: str,
        auth_url: str,
        clock: Callable[[], float] = time.time,
        buffer_seconds: int = EXPIRY_BUFFER_SECONDS,
    ) -> None:
        self._http = http_client
        self._consumer_key = consumer_key
        self._consumer_secret = consumer_secret
        self.auth_url = auth_url
        self._clock = clock
        self.buffer_seconds = buffer_seconds

        self._token: Optional[AccessToken] = None
        self._refresh_task: Optional[asyncio.Task] = None

    @property
    def has_credentials(self) -> bool:
        return bool(self._consumer_key and self._consumer_secret)

    async def ensure_valid(self, force_refresh: bool = False) -> AccessToken:
        """
        Return a non-expired token, running a client-credentials grant if needed.

        Args:
            force_refresh: If True, runs a grant even when the cached token is valid.

        Raises:
            AuthenticationError: If credentials are missing or the grant fails.
                The previously held token (if any) is kept.
        """
        token = self._token
        if (
            not force_refresh
            and token is not None
            and not token.is_expired(self._clock(), self.buffer_seconds)
        ):
            return token

        if self._refresh_task is None:
            logger.debug("Access token missing or expiring, starting grant")
            self._refresh_task = asyncio.create_task(self._refresh())
        else:
            logger.debug("Grant already in flight, awaiting it")

        # Shielded so one cancelled caller does not cancel the grant for the rest
        return await asyncio.shield(self._refresh_task)

    def current_authorization_header(self) -> str:
        """Return the `Authorization` header value for the current token."""
        if self._token is None:
            raise AuthenticationError("No access token acquired")
        return self._token.authorization_header

    def invalidate(self, token: Optional[AccessToken] = None) -> None:
        """
        Drop the current token so the next `ensure_valid` re-acquires.

        Args:
            token: The token that was rejected. If given, nothing happens
                unless it is still the one held.
        """
        if token is not None and token is not self._token:
            logger.debug("Ignoring invalidation of a token that was already replaced")
            return
        if self._token is not None:
            logger.info("Invalidating OPS access token")
        self._token = None

    async def _refresh(self) -> AccessToken:
        try:
            token = await self._request_token()
            self._token = token
            return token
        finally:
            self._refresh_task = None

    async def _request_token(self) -> AccessToken:
        if not self.has_credentials:
            raise AuthenticationError("Missing EPO OPS credentials (consumer key/secret).")

        issued_at = self._clock()
        try:
            response = await self._http.post(
                self.auth_url,
                data={"grant_type": "client_credentials", "scope": GRANT_SCOPE},
                auth=(self._consumer_key, self._consumer_secret),
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/x-www-form-urlencoded",
                },
            )
        except httpx.RequestError as exc:
            raise AuthenticationError(f"EPO auth request failed: {exc}") from exc

        if not response.is_success:
            logger.error("EPO auth error %s", response.status_code)
            raise AuthenticationError(
                f"EPO auth error {response.status_code}",
                status=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise AuthenticationError("EPO auth response is not valid JSON.") from exc

        if not isinstance(payload, dict) or not payload.get("access_token"):
            raise AuthenticationError("EPO auth response missing access_token.")

        try:
            expires_in = int(payload.get("expires_in", DEFAULT_EXPIRES_IN_SECONDS))
        except (TypeError, ValueError) as exc:
            raise AuthenticationError("EPO auth response has invalid expires_in.") from exc

        token = AccessToken(
            value=str(payload["access_token"]),
            token_type=str(payload.get("token_type") or "Bearer"),
            expires_in_seconds=expires_in,
            issued_at=issued_at,
            scope=payload.get("scope"),
        )
        logger.info("🔑 Acquired OPS access token (expires in %ss)", expires_in)
        return token
