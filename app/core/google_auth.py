"""
Google credentials for the Sheets and Drive clients.

The signed-in user's OAuth tokens arrive with each request (the sign-in
flow itself lives in the identity provider). A provider turns them into a
GoogleClientConfig. When no usable token exists it still hands back a
config, just without credentials, so the failure is reported by Google at
the actual call with its full context.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

import httpx

from app.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

TOKEN_URL = "https://oauth2.googleapis.com/token"


@dataclass(frozen=True)
class GoogleClientConfig:
    """Per-request configuration shared by the Google API clients."""
    access_token: Optional[str] = None
    timeout: float = 30.0
    # Tests inject an httpx.MockTransport here
    transport: Optional[httpx.AsyncBaseTransport] = None

    @property
    def authenticated(self) -> bool:
        return bool(self.access_token)

    def auth_headers(self) -> dict:
        if not self.access_token:
            return {}
        return {"Authorization": f"Bearer {self.access_token}"}


class CredentialProvider(Protocol):
    """Anything able to produce a client config for the current caller."""

    async def acquire_client(self) -> GoogleClientConfig:
        ...


class SessionCredentialProvider:
    """
    Credentials taken from the caller's session.

    Uses the access token when present. Otherwise exchanges the refresh
    token at Google's token endpoint if an OAuth client is configured.
    Never raises.
    """

    def __init__(
        self,
        access_token: Optional[str] = None,
        refresh_token: Optional[str] = None,
        settings: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.settings = settings or get_settings()
        self.transport = transport

    def _config(self, access_token: Optional[str]) -> GoogleClientConfig:
        return GoogleClientConfig(
            access_token=access_token,
            timeout=self.settings.GOOGLE_API_TIMEOUT,
            transport=self.transport,
        )

    async def acquire_client(self) -> GoogleClientConfig:
        if self.access_token:
            logger.debug("Using session access token for Google APIs")
            return self._config(self.access_token)

        if self.refresh_token and self.settings.GOOGLE_REFRESH_ENABLED:
            access_token = await self._refresh_access_token()
            if access_token:
                return self._config(access_token)

        logger.warning(
            "No Google access token in session; Google API calls will be "
            "made without credentials"
        )
        return self._config(None)

    async def _refresh_access_token(self) -> Optional[str]:
        """Exchange the refresh token for a fresh access token."""
        try:
            async with httpx.AsyncClient(
                transport=self.transport,
                timeout=self.settings.GOOGLE_API_TIMEOUT,
            ) as client:
                response = await client.post(
                    TOKEN_URL,
                    data={
                        "grant_type": "refresh_token",
                        "refresh_token": self.refresh_token,
                        "client_id": self.settings.GOOGLE_CLIENT_ID,
                        "client_secret": self.settings.GOOGLE_CLIENT_SECRET,
                    },
                )
        except httpx.RequestError as e:
            logger.error(f"Failed to reach Google token endpoint: {e}")
            return None

        if response.status_code != 200:
            logger.error(f"Failed to refresh Google access token: {response.text}")
            return None

        try:
            body = response.json()
        except ValueError:
            logger.error(f"Google token endpoint returned a non-JSON reply: {response.text[:200]}")
            return None
        if not isinstance(body, dict):
            logger.error(f"Google token endpoint returned unexpected JSON: {body!r}")
            return None

        access_token = body.get("access_token")
        if not access_token:
            logger.error("Google token endpoint returned no access_token")
            return None

        logger.info("Refreshed Google access token from refresh token")
        return access_token
