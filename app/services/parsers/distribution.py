"""
Distribution CSV Parser

Parses per-platform distribution reports (streams and revenue per track).
Tolerant to minor column variations and number formats.

Expected headers: Track Name, Artist Name, Platform, Streams, Revenue, Date.
"""

import csv
import io
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Dict, Iterator, List, Optional, Union


@dataclass
class DistributionRow:
    """Parsed row from a distribution report."""
    row_number: int
    track_name: str
    artist_name: str
    platform: str
    stream_count: int
    revenue: Decimal
    date: str  # Raw value, reports use many date formats
    extra: Dict[str, str] = field(default_factory=dict)


@dataclass
class ParseError:
    """Represents a parsing error for a specific row."""
    row_number: int
    error: str
    raw_data: Optional[Dict] = None


@dataclass
class DistributionParseResult:
    """Result of parsing a distribution CSV."""
    rows: List[DistributionRow] = field(default_factory=list)
    errors: List[ParseError] = field(default_factory=list)
    total_rows: int = 0


# Column name mappings - tolerant to minor variations
COLUMN_MAPPINGS = {
    "track_name": ["track name", "track_name", "track", "song title", "title"],
    "artist_name": ["artist name", "artist_name", "artist"],
    "platform": ["platform", "store", "store name", "dsp", "service"],
    "streams": ["streams", "stream count", "plays", "units", "quantity"],
    "revenue": ["revenue", "earnings", "total earned", "amount", "net"],
    "date": ["date", "period", "sales period", "reporting date"],
}

REQUIRED_COLUMNS = ["track_name", "artist_name", "platform", "streams", "revenue", "date"]


def _find_column_index(headers: List[str], field_name: str) -> Optional[int]:
    """First header matching one of the field's aliases, case-insensitive."""
    positions = {h.lower().strip(): i for i, h in reversed(list(enumerate(headers)))}
    for alias in COLUMN_MAPPINGS.get(field_name, [field_name]):
        if alias in positions:
            return positions[alias]
    return None


def _cell(row: List[str], index: Optional[int]) -> str:
    if index is None or index >= len(row):
        return ""
    return row[index].strip()


_CURRENCY_SYMBOLS = re.compile(r"[$€£,\s]")


def _parse_revenue(value: str) -> Decimal:
    """Money amount; "(1.25)" is negative, blanks and garbage count as zero."""
    negative = value.startswith("(") and value.endswith(")")
    cleaned = _CURRENCY_SYMBOLS.sub("", value.strip("()"))
    try:
        amount = Decimal(cleaned) if cleaned else Decimal("0")
    except InvalidOperation:
        return Decimal("0")
    return -amount if negative else amount


def _parse_streams(value: str) -> int:
    try:
        return int(float(value.replace(",", ""))) if value else 0
    except ValueError:
        return 0


def _decode(content: Union[str, bytes]) -> str:
    if isinstance(content, bytes):
        try:
            return content.decode("utf-8-sig")  # Handle BOM
        except UnicodeDecodeError:
            return content.decode("latin-1")
    return content


class DistributionParser:
    """Parser for distribution report CSV files."""

    def __init__(self):
        self._column_indices: Dict[str, Optional[int]] = {}
        self._extra_columns: Dict[str, int] = {}

    def _detect_columns(self, headers: List[str]) -> None:
        """Detect column indices from headers."""
        for field_name in COLUMN_MAPPINGS:
            self._column_indices[field_name] = _find_column_index(headers, field_name)

        missing = [f for f in REQUIRED_COLUMNS if self._column_indices.get(f) is None]
        if missing:
            raise ValueError(
                f"Missing required CSV headers: {missing}. Expected headers: "
                f"Track Name, Artist Name, Platform, Streams, Revenue, Date"
            )

        known = set(self._column_indices.values())
        self._extra_columns = {
            header.strip(): i
            for i, header in enumerate(headers)
            if i not in known and header.strip()
        }

    def _parse_row(self, row: List[str], row_number: int) -> DistributionRow:
        """Parse a single CSV row into a DistributionRow."""
        track_name = _cell(row, self._column_indices.get("track_name"))
        platform = _cell(row, self._column_indices.get("platform"))
        if not track_name or not platform:
            raise ValueError("Track Name and Platform are required")

        return DistributionRow(
            row_number=row_number,
            track_name=track_name,
            artist_name=_cell(row, self._column_indices.get("artist_name")),
            platform=platform,
            stream_count=_parse_streams(_cell(row, self._column_indices.get("streams"))),
            revenue=_parse_revenue(_cell(row, self._column_indices.get("revenue"))),
            date=_cell(row, self._column_indices.get("date")),
            extra={name: _cell(row, i) for name, i in self._extra_columns.items()},
        )

    def parse(self, content: Union[str, bytes]) -> DistributionParseResult:
        """
        Parse distribution CSV content.

        Args:
            content: CSV file content as string or bytes

        Returns:
            DistributionParseResult with parsed rows and errors
        """
        result = DistributionParseResult()
        for item in self.parse_iter(content):
            if isinstance(item, ParseError):
                result.errors.append(item)
                if item.row_number > 0:
                    result.total_rows += 1
            else:
                result.rows.append(item)
                result.total_rows += 1
        return result

    def parse_iter(self, content: Union[str, bytes]) -> Iterator[Union[DistributionRow, ParseError]]:
        """
        Parse distribution CSV content as an iterator.

        Yields:
            DistributionRow or ParseError for each non-empty row
        """
        reader = csv.reader(io.StringIO(_decode(content)))
        headers = next(reader, None)
        if headers is None:
            yield ParseError(row_number=0, error="Empty CSV file")
            return

        try:
            self._detect_columns(headers)
        except ValueError as e:
            yield ParseError(row_number=0, error=str(e))
            return

        # Sheet-style numbering: the header is line 1
        for row_number, row in enumerate(reader, start=2):
            if not any(cell.strip() for cell in row):
                continue
            try:
                yield self._parse_row(row, row_number)
            except ValueError as e:
                raw_data = dict(zip(headers, row))
                yield ParseError(row_number=row_number, error=str(e), raw_data=raw_data)
