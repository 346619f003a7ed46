"""
Releases Router

CRUD endpoints for catalog releases stored in Google Sheets, with cover
art and audio uploaded to Google Drive.

Every request carries the signed-in user's Google OAuth token in the
Authorization header (and optionally a refresh token in X-Refresh-Token).
"""

import logging
from datetime import date
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, File, Form, Header, HTTPException, Query, Response, UploadFile, status

from app.core.config import get_settings
from app.core.exceptions import CatalogError
from app.core.google_auth import CredentialProvider, SessionCredentialProvider
from app.schemas.releases import (
    AttachedFile,
    CatalogDashboard,
    Release,
    ReleaseFiles,
    ReleaseInput,
    ReleaseStatus,
)
from app.services.catalog_stats import build_dashboard, search_releases
from app.services.release_store import ReleaseStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/releases", tags=["releases"])


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def get_credential_provider(
    authorization: Annotated[Optional[str], Header()] = None,
    x_refresh_token: Annotated[Optional[str], Header()] = None,
) -> CredentialProvider:
    """Credentials come from the caller's session, never from process state."""
    return SessionCredentialProvider(
        access_token=_bearer_token(authorization),
        refresh_token=x_refresh_token,
        settings=get_settings(),
    )


async def get_release_store(
    provider: Annotated[CredentialProvider, Depends(get_credential_provider)],
) -> ReleaseStore:
    config = await provider.acquire_client()
    return ReleaseStore.from_config(config, get_settings())


def _http_error(e: CatalogError) -> HTTPException:
    return HTTPException(status_code=e.status_code, detail=str(e))


async def _attached(upload: Optional[UploadFile]) -> Optional[AttachedFile]:
    """Read an uploaded file; an empty part counts as no file."""
    if upload is None:
        return None
    content = await upload.read()
    if not content:
        return None
    return AttachedFile(
        content=content,
        filename=upload.filename or "upload",
        mime_type=upload.content_type or "application/octet-stream",
    )


class ReleaseForm:
    """Multipart form shared by create and update."""

    def __init__(
        self,
        title: Annotated[str, Form()] = "",
        artist: Annotated[str, Form()] = "",
        release_date: Annotated[Optional[date], Form()] = None,
        release_status: Annotated[Optional[ReleaseStatus], Form(alias="status")] = None,
        upc: Annotated[Optional[str], Form()] = None,
        isrc: Annotated[Optional[str], Form()] = None,
        cover_art_file: Annotated[Optional[UploadFile], File()] = None,
        audio_file: Annotated[Optional[UploadFile], File()] = None,
    ):
        self.data = ReleaseInput(
            title=title,
            artist=artist,
            release_date=release_date,
            status=release_status,
            upc=upc,
            isrc=isrc,
        )
        self.cover_art_file = cover_art_file
        self.audio_file = audio_file

    async def files(self) -> ReleaseFiles:
        return ReleaseFiles(
            cover_art=await _attached(self.cover_art_file),
            audio=await _attached(self.audio_file),
        )


@router.get("", response_model=List[Release])
async def list_releases(
    store: Annotated[ReleaseStore, Depends(get_release_store)],
    search: Optional[str] = Query(None, description="Search by title or artist"),
) -> List[Release]:
    """List all releases. Backend failures are errors, never an empty list."""
    try:
        releases = await store.list_releases()
    except CatalogError as e:
        raise _http_error(e)
    return search_releases(releases, search)


@router.get("/dashboard", response_model=CatalogDashboard)
async def releases_dashboard(
    store: Annotated[ReleaseStore, Depends(get_release_store)],
) -> CatalogDashboard:
    """Latest releases and most active artists."""
    try:
        releases = await store.list_releases()
    except CatalogError as e:
        raise _http_error(e)
    return build_dashboard(releases)


@router.get("/{release_id}", response_model=Release)
async def get_release(
    release_id: str,
    store: Annotated[ReleaseStore, Depends(get_release_store)],
) -> Release:
    """Get a single release by id."""
    try:
        release = await store.get_release(release_id)
    except CatalogError as e:
        raise _http_error(e)
    if release is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Release {release_id} not found",
        )
    return release


@router.post("", response_model=Release, status_code=status.HTTP_201_CREATED)
async def create_release(
    store: Annotated[ReleaseStore, Depends(get_release_store)],
    form: Annotated[ReleaseForm, Depends()],
) -> Release:
    """Create a release, uploading any attached cover art or audio first."""
    try:
        return await store.create_release(form.data, await form.files())
    except CatalogError as e:
        raise _http_error(e)


@router.put("/{release_id}", response_model=Release)
async def update_release(
    release_id: str,
    store: Annotated[ReleaseStore, Depends(get_release_store)],
    form: Annotated[ReleaseForm, Depends()],
) -> Release:
    """Replace a release. Attachments not re-uploaded are kept."""
    try:
        return await store.update_release(release_id, form.data, await form.files())
    except CatalogError as e:
        raise _http_error(e)


@router.delete("/{release_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_release(
    release_id: str,
    store: Annotated[ReleaseStore, Depends(get_release_store)],
) -> Response:
    """Delete a release's row from the sheet."""
    try:
        await store.delete_release(release_id)
    except CatalogError as e:
        raise _http_error(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
