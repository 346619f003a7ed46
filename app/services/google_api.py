"""
Shared plumbing for the Google REST clients.

Opens one httpx.AsyncClient per call and translates Google replies into
the catalog error taxonomy.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from app.core.exceptions import (
    CatalogError,
    NotFound,
    PermissionDenied,
    RemoteRequestRejected,
    RemoteUnavailable,
    Unauthenticated,
)
from app.core.google_auth import GoogleClientConfig

logger = logging.getLogger(__name__)


def _google_error_message(response: httpx.Response) -> str:
    """Pull the human-readable message out of a Google error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return f"{error['message']} (code {error.get('code', response.status_code)})"
    if isinstance(error, str):
        return body.get("error_description") or error
    return response.text or response.reason_phrase


def error_for_response(response: httpx.Response, operation: str) -> CatalogError:
    """Map a failed Google reply onto the error taxonomy."""
    status = response.status_code
    detail = _google_error_message(response)

    if status == 401:
        return Unauthenticated(
            f"Google rejected the credentials (401). The access token is missing, "
            f"invalid or expired: {detail}",
            operation=operation,
        )
    if status == 403:
        return PermissionDenied(
            f"Permission denied (403). Check that the API is enabled, the OAuth "
            f"scopes include spreadsheets and drive.file, and the user can access "
            f"the resource: {detail}",
            operation=operation,
        )
    if status == 404:
        return NotFound(f"Google resource not found (404): {detail}", operation=operation)
    if status == 429 or status >= 500:
        return RemoteUnavailable(
            f"Google API unavailable ({status}): {detail}",
            operation=operation,
        )
    return RemoteRequestRejected(
        f"Google API rejected the request ({status}): {detail}",
        operation=operation,
    )


class GoogleApiClient:
    """Base class for thin Google API wrappers."""

    def __init__(self, config: GoogleClientConfig):
        self.config = config

    async def _request(
        self,
        method: str,
        url: str,
        operation: str,
        **kwargs: Any,
    ) -> dict:
        """Issue one authenticated request and return the decoded JSON body."""
        headers = {**self.config.auth_headers(), **kwargs.pop("headers", {})}
        logger.debug(f"{operation}: {method} {url}")

        try:
            async with httpx.AsyncClient(
                transport=self.config.transport,
                timeout=self.config.timeout,
            ) as client:
                response = await client.request(method, url, headers=headers, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"{operation}: transport error talking to Google: {e}")
            raise RemoteUnavailable(
                f"Failed to connect to Google API: {e}",
                operation=operation,
                cause=e,
            ) from e

        if not response.is_success:
            error = error_for_response(response, operation)
            logger.error(f"{operation}: {error.message}")
            raise error

        if not response.content:
            return {}
        return response.json()


def optional_str(value: Optional[Any]) -> str:
    return "" if value is None else str(value)
