"""
Release Store

CRUD for releases kept in a Google Sheet, with cover art and audio
uploaded to a Google Drive folder.

The sheet has no primary key, no index and no transactions:
- every operation re-reads the data range; nothing is cached between calls
- update and delete locate the row by a linear scan on the id column
  (O(n), fine at catalog scale) and then write by row position
- there is no compare-and-swap, so the store is last-writer-wins, not
  linearizable. Two concurrent updates to one release lose one of them,
  and a row inserted or removed between another caller's scan and write
  shifts that write or delete onto the wrong row.

Nothing is retried. The API offers no idempotency key, so reissuing a
write after a partial success could duplicate or corrupt a row.
"""
from __future__ import annotations

import logging
import secrets
import time
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, List, Optional

from app.core.config import Settings, get_settings
from app.core.exceptions import CatalogError, ConfigurationMissing, NotFound, ValidationFailed
from app.core.google_auth import GoogleClientConfig
from app.schemas.releases import AttachedFile, Release, ReleaseFiles, ReleaseInput
from app.services.drive import DriveClient
from app.services.release_mapper import (
    COL_AUDIO_REF,
    COL_COVER_REF,
    COL_CREATED_AT,
    COL_ID,
    FIRST_DATA_ROW,
    extract_drive_id,
    parse_created_at,
    release_to_row,
    row_to_release,
)
from app.services.sheets import SheetsClient, a1_range

logger = logging.getLogger(__name__)

FIRST_COLUMN = "A"
LAST_COLUMN = "J"

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def sheet_row_number(data_index: int) -> int:
    """1-based sheet row holding the data row at 0-based data_index."""
    return data_index + FIRST_DATA_ROW


def structural_row_index(data_index: int) -> int:
    """0-based whole-sheet row index (header counted) for a structural delete."""
    return sheet_row_number(data_index) - 1


def find_row_index(rows: List[List[str]], release_id: str) -> Optional[int]:
    """
    Return the 0-based data index of the row whose id cell equals release_id.

    Rows with an empty id cell never match.
    """
    if not release_id or not release_id.strip():
        return None
    release_id = release_id.strip()
    for index, row in enumerate(rows):
        if row and len(row) > COL_ID and str(row[COL_ID]).strip() == release_id:
            return index
    return None


def _base36(number: int) -> str:
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits)) or "0"


def generate_release_id() -> str:
    """Time-based id with a random suffix. Collisions are not checked."""
    return f"REL-{_base36(int(time.time() * 1000))}-{secrets.token_hex(3)}"


def upload_display_name(prefix: str, filename: str) -> str:
    return f"{prefix}_{int(time.time() * 1000)}_{filename or 'upload'}"


@contextmanager
def _operation(operation: str, release_id: Optional[str] = None) -> Iterator[None]:
    """Attach operation context to any catalog error raised inside."""
    try:
        yield
    except CatalogError as e:
        e.add_context(operation, release_id)
        logger.error(f"{e}")
        raise


class ReleaseStore:
    """Release CRUD over a Sheets tab and a Drive folder."""

    def __init__(
        self,
        sheets: SheetsClient,
        drive: DriveClient,
        spreadsheet_id: Optional[str],
        sheet_name: str,
        folder_id: Optional[str],
    ):
        self.sheets = sheets
        self.drive = drive
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name
        self.folder_id = folder_id

    @classmethod
    def from_config(
        cls,
        config: GoogleClientConfig,
        settings: Optional[Settings] = None,
    ) -> "ReleaseStore":
        settings = settings or get_settings()
        return cls(
            sheets=SheetsClient(config),
            drive=DriveClient(config),
            spreadsheet_id=settings.GOOGLE_SPREADSHEET_ID,
            sheet_name=settings.RELEASES_SHEET_NAME,
            folder_id=settings.GOOGLE_DRIVE_FOLDER_ID,
        )

    # --- Ranges ---

    @property
    def data_range(self) -> str:
        return a1_range(self.sheet_name, f"{FIRST_COLUMN}{FIRST_DATA_ROW}:{LAST_COLUMN}")

    @property
    def append_range(self) -> str:
        return a1_range(self.sheet_name, f"{FIRST_COLUMN}:{LAST_COLUMN}")

    def row_range(self, data_index: int) -> str:
        row_number = sheet_row_number(data_index)
        return a1_range(
            self.sheet_name,
            f"{FIRST_COLUMN}{row_number}:{LAST_COLUMN}{row_number}",
        )

    # --- Eager checks ---

    def _require_spreadsheet(self) -> str:
        if not self.spreadsheet_id:
            raise ConfigurationMissing(
                "GOOGLE_SPREADSHEET_ID is not configured. Set it in the environment "
                "and restart the server."
            )
        return self.spreadsheet_id

    def _require_folder(self) -> str:
        if not self.folder_id:
            raise ConfigurationMissing(
                "GOOGLE_DRIVE_FOLDER_ID is not configured for file uploads. Set it in "
                "the environment and restart the server."
            )
        return self.folder_id

    @staticmethod
    def _validate(data: ReleaseInput) -> None:
        missing = []
        if not (data.title or "").strip():
            missing.append("title")
        if not (data.artist or "").strip():
            missing.append("artist")
        if data.release_date is None:
            missing.append("release_date")
        if data.status is None:
            missing.append("status")
        if missing:
            raise ValidationFailed(f"Missing required fields: {', '.join(missing)}")

    # --- Helpers ---

    async def _read_rows(self) -> List[List[str]]:
        return await self.sheets.read_range(self._require_spreadsheet(), self.data_range)

    async def _upload(self, attached: AttachedFile, prefix: str) -> str:
        return await self.drive.upload(
            attached.content,
            attached.mime_type,
            upload_display_name(prefix, attached.filename),
            self._require_folder(),
        )

    # --- Operations ---

    async def list_releases(self) -> List[Release]:
        """
        All releases in sheet order; blank rows are skipped.

        Backend failures raise, so an empty list always means an empty sheet.
        """
        with _operation("list_releases"):
            return await self._load_releases()

    async def _load_releases(self) -> List[Release]:
        rows = await self._read_rows()
        releases = []
        for index, row in enumerate(rows):
            release = row_to_release(row, index)
            if release is not None:
                releases.append(release)

        if rows and not releases:
            logger.warning(f"All {len(rows)} rows in {self.data_range} were blank")
        logger.info(f"Listed {len(releases)} releases from {len(rows)} rows")
        return releases

    async def get_release(self, release_id: str) -> Optional[Release]:
        """First release with the given id, or None."""
        with _operation("get_release", release_id):
            releases = await self._load_releases()
        for release in releases:
            if release.managed and release.id == release_id:
                return release
        logger.info(f"Release {release_id} not found among {len(releases)} releases")
        return None

    async def create_release(
        self,
        data: ReleaseInput,
        files: Optional[ReleaseFiles] = None,
    ) -> Release:
        """
        Upload attachments, then append a new row.

        A failed upload aborts before anything is written to the sheet.
        """
        files = files or ReleaseFiles()
        with _operation("create_release"):
            spreadsheet_id = self._require_spreadsheet()
            self._require_folder()
            self._validate(data)

            cover_art_ref = None
            audio_ref = None
            if files.cover_art is not None:
                cover_art_ref = await self._upload(files.cover_art, "cover")
            if files.audio is not None:
                audio_ref = await self._upload(files.audio, "audio")

            release = Release(
                id=generate_release_id(),
                title=data.title.strip(),
                artist=data.artist.strip(),
                upc=(data.upc or "").strip(),
                isrc=(data.isrc or "").strip(),
                release_date=data.release_date,
                status=data.status,
                cover_art_ref=cover_art_ref,
                audio_ref=audio_ref,
                created_at=datetime.now(timezone.utc),
            )
            await self.sheets.append_row(spreadsheet_id, self.append_range, release_to_row(release))

        logger.info(f"Created release {release.id} ({release.title} by {release.artist})")
        return release

    async def update_release(
        self,
        release_id: str,
        data: ReleaseInput,
        files: Optional[ReleaseFiles] = None,
    ) -> Release:
        """
        Replace the whole row of an existing release.

        Attachments not supplied keep their stored Drive id; created_at is
        written back exactly as stored.
        """
        files = files or ReleaseFiles()
        with _operation("update_release", release_id):
            spreadsheet_id = self._require_spreadsheet()
            self._require_folder()
            self._validate(data)

            rows = await self._read_rows()
            data_index = find_row_index(rows, release_id)
            if data_index is None:
                raise NotFound(f"Release {release_id} not found in sheet {self.sheet_name}")
            existing = rows[data_index]
            logger.info(
                f"Release {release_id} found at sheet row {sheet_row_number(data_index)}"
            )

            def cell(index: int) -> str:
                return existing[index] if index < len(existing) else ""

            cover_art_ref = extract_drive_id(cell(COL_COVER_REF))
            audio_ref = extract_drive_id(cell(COL_AUDIO_REF))
            if files.cover_art is not None:
                cover_art_ref = await self._upload(files.cover_art, "cover")
            if files.audio is not None:
                audio_ref = await self._upload(files.audio, "audio")

            created_at_text = cell(COL_CREATED_AT)
            release = Release(
                id=release_id.strip(),
                title=data.title.strip(),
                artist=data.artist.strip(),
                upc=(data.upc or "").strip(),
                isrc=(data.isrc or "").strip(),
                release_date=data.release_date,
                status=data.status,
                cover_art_ref=cover_art_ref,
                audio_ref=audio_ref,
                created_at=parse_created_at(created_at_text).value,
            )
            await self.sheets.write_row(
                spreadsheet_id,
                self.row_range(data_index),
                release_to_row(release, created_at_text=created_at_text),
            )

        logger.info(f"Updated release {release_id}")
        return release

    async def delete_release(self, release_id: str) -> None:
        """Remove the release's row from the sheet."""
        with _operation("delete_release", release_id):
            spreadsheet_id = self._require_spreadsheet()

            rows = await self._read_rows()
            data_index = find_row_index(rows, release_id)
            if data_index is None:
                raise NotFound(f"Release {release_id} not found in sheet {self.sheet_name}")

            row_index = structural_row_index(data_index)
            logger.info(
                f"Deleting release {release_id}: data index {data_index}, "
                f"sheet row index {row_index}"
            )
            await self.sheets.delete_rows(spreadsheet_id, self.sheet_name, row_index, 1)

        logger.info(f"Deleted release {release_id}")
