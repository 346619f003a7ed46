"""
Release Row Mapper

Converts spreadsheet rows into Release records and back. Cells are
free text typed by people, so every field is parsed leniently: a bad
cell degrades to a fallback value, it never rejects the row.

Column layout (A-J):
    id, created_at, title, artist, cover_ref, audio_ref, upc, isrc,
    release_date, status
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Generic, List, Optional, TypeVar, Union

from app.schemas.releases import Release, ReleaseStatus

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Column indices
COL_ID = 0
COL_CREATED_AT = 1
COL_TITLE = 2
COL_ARTIST = 3
COL_COVER_REF = 4
COL_AUDIO_REF = 5
COL_UPC = 6
COL_ISRC = 7
COL_RELEASE_DATE = 8
COL_STATUS = 9
COLUMN_COUNT = 10

# Row 1 is the header; data starts on sheet row 2
FIRST_DATA_ROW = 2

DEFAULT_TITLE = "Untitled"
DEFAULT_ARTIST = "Unknown Artist"
DEFAULT_STATUS = ReleaseStatus.PENDING

# Drive links that embed a file id
DRIVE_ID_PATTERNS = [
    re.compile(r"/file/d/([A-Za-z0-9_-]+)"),   # .../file/d/ID/view
    re.compile(r"[?&]id=([A-Za-z0-9_-]+)"),    # .../open?id=ID, .../uc?id=ID
    re.compile(r"/d/([A-Za-z0-9_-]+)"),        # docs-style .../d/ID/edit
]
MIN_BARE_ID_LENGTH = 25

# Tried in order once strict ISO parsing fails
LENIENT_DATE_FORMATS = [
    "%m/%d/%Y",           # 04/11/2025
    "%d/%m/%Y",           # 11/04/2025
    "%Y/%m/%d",           # 2025/04/11
    "%b %d, %Y",          # Apr 11, 2025
    "%B %d, %Y",          # April 11, 2025
    "%d %b %Y",           # 11 Apr 2025
    "%d %B %Y",           # 11 April 2025
    "%d.%m.%Y",           # 11.04.2025
]


@dataclass(frozen=True)
class Parsed(Generic[T]):
    """A cell that parsed cleanly."""
    value: T

    @property
    def is_fallback(self) -> bool:
        return False


@dataclass(frozen=True)
class Fallback(Generic[T]):
    """A cell that could not be parsed; value is the substitute used."""
    value: T
    reason: str

    @property
    def is_fallback(self) -> bool:
        return True


FieldResult = Union[Parsed[T], Fallback[T]]


def sheet_row_label(data_index: int) -> int:
    """1-based sheet row of a data row, for log messages."""
    return data_index + FIRST_DATA_ROW


def _get_value(row: List[str], index: int) -> str:
    """Safely get a stripped cell; Google omits trailing empty cells."""
    if index >= len(row) or row[index] is None:
        return ""
    return str(row[index]).strip()


def _parse_iso_datetime(text: str) -> Optional[datetime]:
    # fromisoformat only accepts a trailing Z from Python 3.11
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def parse_release_date(text: str) -> FieldResult[date]:
    """
    Parse the release date cell.

    Strict ISO date first, then ISO timestamps and common human formats,
    finally today's date as a fallback.
    """
    text = (text or "").strip()
    if not text:
        return Fallback(date.today(), "empty release date")

    try:
        return Parsed(date.fromisoformat(text))
    except ValueError:
        pass

    parsed = _parse_iso_datetime(text)
    if parsed is not None:
        return Parsed(parsed.date())

    for fmt in LENIENT_DATE_FORMATS:
        try:
            return Parsed(datetime.strptime(text, fmt).date())
        except ValueError:
            continue

    return Fallback(date.today(), f"unparseable release date {text!r}")


def parse_status(text: str) -> FieldResult[ReleaseStatus]:
    """Match the status cell case-insensitively against the known statuses."""
    text = (text or "").strip()
    if not text:
        return Fallback(DEFAULT_STATUS, "empty status")
    for status in ReleaseStatus:
        if status.value.lower() == text.lower():
            return Parsed(status)
    return Fallback(DEFAULT_STATUS, f"unknown status {text!r}")


def parse_created_at(text: str) -> FieldResult[Optional[datetime]]:
    text = (text or "").strip()
    if not text:
        return Fallback(None, "empty created_at")
    parsed = _parse_iso_datetime(text)
    if parsed is None:
        return Fallback(None, f"unparseable created_at {text!r}")
    return Parsed(parsed)


def extract_drive_id(text: Optional[str]) -> Optional[str]:
    """
    Extract a Drive file id from a cell.

    Accepts any of the known link shapes, or a bare id: no scheme, no
    slashes, no whitespace and at least MIN_BARE_ID_LENGTH characters.
    """
    if not text or not isinstance(text, str):
        return None
    text = text.strip()
    if not text:
        return None

    for pattern in DRIVE_ID_PATTERNS:
        match = pattern.search(text)
        if match:
            logger.debug(f"Extracted Drive id {match.group(1)} from {text!r}")
            return match.group(1)

    looks_like_url = "://" in text or "/" in text or any(c.isspace() for c in text)
    if not looks_like_url and len(text) >= MIN_BARE_ID_LENGTH:
        return text

    logger.debug(f"No Drive id found in {text!r}")
    return None


def _log_fallback(result: FieldResult, field_name: str, data_index: int) -> None:
    if result.is_fallback:
        logger.warning(
            f"Row {sheet_row_label(data_index)}: {field_name} fallback to "
            f"{result.value!r} ({result.reason})"
        )


def row_to_release(row: List[str], data_index: int) -> Optional[Release]:
    """
    Map a data row to a Release.

    Args:
        row: Cells as returned by the Sheets API (may be short)
        data_index: 0-based position of the row below the header

    Returns:
        Release, or None for a blank row (no id and no title)
    """
    release_id = _get_value(row, COL_ID)
    title = _get_value(row, COL_TITLE)

    if not release_id and not title:
        logger.debug(f"Skipping blank row {sheet_row_label(data_index)}")
        return None

    managed = bool(release_id)
    if not managed:
        release_id = f"unmanaged-row-{sheet_row_label(data_index)}"
        logger.warning(
            f"Row {sheet_row_label(data_index)} has no id; listed as {release_id} "
            f"but it cannot be updated or deleted"
        )

    release_date = parse_release_date(_get_value(row, COL_RELEASE_DATE))
    _log_fallback(release_date, "release_date", data_index)

    status = parse_status(_get_value(row, COL_STATUS))
    _log_fallback(status, "status", data_index)

    created_at = parse_created_at(_get_value(row, COL_CREATED_AT))
    if _get_value(row, COL_CREATED_AT):
        _log_fallback(created_at, "created_at", data_index)

    return Release(
        id=release_id,
        title=title or DEFAULT_TITLE,
        artist=_get_value(row, COL_ARTIST) or DEFAULT_ARTIST,
        upc=_get_value(row, COL_UPC),
        isrc=_get_value(row, COL_ISRC),
        release_date=release_date.value,
        status=status.value,
        cover_art_ref=extract_drive_id(_get_value(row, COL_COVER_REF)),
        audio_ref=extract_drive_id(_get_value(row, COL_AUDIO_REF)),
        created_at=created_at.value,
        managed=managed,
    )


def format_created_at(value: Optional[datetime]) -> str:
    return value.isoformat() if value else ""


def release_to_row(release: Release, created_at_text: Optional[str] = None) -> List[str]:
    """
    Serialize a Release into the ten cells of its row.

    Args:
        release: Release to store
        created_at_text: Stored created_at cell to write back verbatim,
            overriding release.created_at
    """
    if created_at_text is None:
        created_at_text = format_created_at(release.created_at)

    row = [""] * COLUMN_COUNT
    row[COL_ID] = release.id
    row[COL_CREATED_AT] = created_at_text
    row[COL_TITLE] = release.title
    row[COL_ARTIST] = release.artist
    row[COL_COVER_REF] = release.cover_art_ref or ""
    row[COL_AUDIO_REF] = release.audio_ref or ""
    row[COL_UPC] = release.upc or ""
    row[COL_ISRC] = release.isrc or ""
    row[COL_RELEASE_DATE] = release.release_date.isoformat()
    row[COL_STATUS] = release.status.value
    return row
