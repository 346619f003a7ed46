"""Tests for turning session tokens into Google client configs."""
from __future__ import annotations

import httpx
import pytest

from app.core.config import Settings
from app.core.exceptions import Unauthenticated
from app.core.google_auth import SessionCredentialProvider
from app.services.release_store import ReleaseStore


@pytest.fixture
def settings(monkeypatch) -> Settings:
    monkeypatch.setenv("GOOGLE_SPREADSHEET_ID", "sheet-1")
    monkeypatch.setenv("GOOGLE_DRIVE_FOLDER_ID", "folder-1")
    monkeypatch.setenv("GOOGLE_CLIENT_ID", "client-id")
    monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "client-secret")
    monkeypatch.setenv("GOOGLE_API_TIMEOUT", "5")
    return Settings()


def provider(google, settings, **tokens) -> SessionCredentialProvider:
    return SessionCredentialProvider(
        settings=settings,
        transport=httpx.MockTransport(google.handler),
        **tokens,
    )


async def test_access_token_is_used_directly(google, settings):
    config = await provider(google, settings, access_token="test-access-token").acquire_client()
    assert config.authenticated
    assert config.auth_headers() == {"Authorization": "Bearer test-access-token"}
    assert config.timeout == 5.0
    assert google.requests == []


async def test_refresh_token_is_exchanged(google, settings):
    config = await provider(google, settings, refresh_token="good-refresh").acquire_client()
    assert config.access_token == "refreshed-access-token"

    assert google.operations() == ["token"]
    form = google.requests[0].content.decode()
    assert "grant_type=refresh_token" in form
    assert "client_id=client-id" in form


async def test_failed_refresh_yields_unauthenticated_config(google, settings):
    config = await provider(google, settings, refresh_token="revoked").acquire_client()
    assert not config.authenticated
    assert config.auth_headers() == {}


@pytest.mark.parametrize(
    "reply",
    [
        httpx.Response(200, text="<html>proxy login</html>"),
        httpx.Response(200, json=["access_token", "abc"]),
        httpx.Response(200, json={"token_type": "Bearer"}),
    ],
    ids=["html", "json-list", "no-token"],
)
async def test_malformed_token_reply_yields_unauthenticated_config(settings, reply):
    provider = SessionCredentialProvider(
        refresh_token="good-refresh",
        settings=settings,
        transport=httpx.MockTransport(lambda request: reply),
    )
    config = await provider.acquire_client()
    assert not config.authenticated


async def test_unreachable_token_endpoint_yields_unauthenticated_config(google, settings):
    google.failures["token"] = "transport"
    config = await provider(google, settings, refresh_token="good-refresh").acquire_client()
    assert not config.authenticated


async def test_refresh_skipped_without_oauth_client(google, settings):
    settings.GOOGLE_CLIENT_SECRET = None
    config = await provider(google, settings, refresh_token="good-refresh").acquire_client()
    assert not config.authenticated
    assert google.requests == []


async def test_no_tokens_never_raises(google, settings):
    config = await provider(google, settings).acquire_client()
    assert not config.authenticated


async def test_store_without_credentials_reports_unauthenticated(google, settings):
    config = await provider(google, settings).acquire_client()
    store = ReleaseStore.from_config(config, settings)

    with pytest.raises(Unauthenticated) as excinfo:
        await store.list_releases()
    assert excinfo.value.operation == "list_releases"


def test_settings_defaults(monkeypatch):
    for name in (
        "GOOGLE_SPREADSHEET_ID", "GOOGLE_DRIVE_FOLDER_ID", "RELEASES_SHEET_NAME",
        "GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET", "CORS_ALLOWED_ORIGINS",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("GOOGLE_SPREADSHEET_ID", "   ")

    settings = Settings()
    assert settings.GOOGLE_SPREADSHEET_ID is None
    assert settings.GOOGLE_DRIVE_FOLDER_ID is None
    assert settings.RELEASES_SHEET_NAME == "Releases"
    assert settings.CORS_ALLOWED_ORIGINS == ["*"]
    assert not settings.GOOGLE_REFRESH_ENABLED


def test_cors_origins_are_split(monkeypatch):
    monkeypatch.setenv("CORS_ALLOWED_ORIGINS", "http://localhost:3000, https://catalog.example.com,")
    assert Settings().CORS_ALLOWED_ORIGINS == [
        "http://localhost:3000",
        "https://catalog.example.com",
    ]
