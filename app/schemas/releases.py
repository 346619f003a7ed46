"""Schemas for catalog releases."""
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, computed_field

DRIVE_VIEW_URL = "https://drive.google.com/uc?id={file_id}"


class ReleaseStatus(str, Enum):
    """Distribution status of a release."""
    UPLOAD = "Upload"
    PENDING = "Pending"
    RELEASED = "Released"
    TAKEDOWN = "Takedown"


class Release(BaseModel):
    """A release as stored in one spreadsheet row."""
    id: str = Field(..., description="Generated at creation, never reassigned")
    title: str
    artist: str
    upc: str = ""
    isrc: str = ""
    release_date: date
    status: ReleaseStatus
    cover_art_ref: Optional[str] = Field(None, description="Drive file id of the cover art")
    audio_ref: Optional[str] = Field(None, description="Drive file id of the audio file")
    created_at: Optional[datetime] = None
    managed: bool = Field(
        True,
        description="False for rows without an id cell; those cannot be updated or deleted",
    )

    @computed_field
    @property
    def cover_art_url(self) -> Optional[str]:
        if not self.cover_art_ref:
            return None
        return DRIVE_VIEW_URL.format(file_id=self.cover_art_ref)

    @computed_field
    @property
    def audio_file_label(self) -> Optional[str]:
        if not self.audio_ref:
            return None
        return f"File ID: {self.audio_ref}"


class ReleaseInput(BaseModel):
    """Editable release fields, as submitted by the release form."""
    title: str = ""
    artist: str = ""
    upc: Optional[str] = None
    isrc: Optional[str] = None
    release_date: Optional[date] = None
    status: Optional[ReleaseStatus] = None


@dataclass
class AttachedFile:
    """A file received with a create/update request, not yet uploaded."""
    content: bytes
    filename: str
    mime_type: str = "application/octet-stream"


@dataclass
class ReleaseFiles:
    """Attachments for a create/update. None means keep what is stored."""
    cover_art: Optional[AttachedFile] = None
    audio: Optional[AttachedFile] = None


class ArtistReleaseCount(BaseModel):
    """Number of releases for one artist."""
    artist: str
    count: int


class CatalogDashboard(BaseModel):
    """Dashboard overview of the catalog."""
    total_releases: int
    latest_releases: List[Release]
    top_artists: List[ArtistReleaseCount]
