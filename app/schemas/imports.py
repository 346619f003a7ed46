"""Pydantic schemas for imports API."""

from decimal import Decimal
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class ImportErrorDetail(BaseModel):
    """Detail of a single import error."""
    row_number: int
    error: str
    raw_data: Optional[Dict] = None


class DistributionEntry(BaseModel):
    """One parsed line of a distribution report."""
    row_number: int
    track_name: str
    artist_name: str
    platform: str
    stream_count: int
    revenue: Decimal
    date: str
    extra: Dict[str, str] = Field(default_factory=dict)

    class Config:
        from_attributes = True


class PlatformSummaryResponse(BaseModel):
    """Totals for one platform."""
    platform: str
    total_revenue: Decimal
    total_streams: int
    track_count: int

    class Config:
        from_attributes = True


class DistributionImportResponse(BaseModel):
    """Response schema for a distribution CSV import."""
    filename: Optional[str]
    total_rows: int
    rows_parsed: int = Field(description="Number of rows successfully parsed")
    errors_count: int = Field(description="Number of rows that failed parsing")
    entries: List[DistributionEntry]
    errors: List[ImportErrorDetail] = Field(default_factory=list)
    platforms: List[PlatformSummaryResponse] = Field(default_factory=list)
