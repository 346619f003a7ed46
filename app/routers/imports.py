"""
Imports Router

Handles distribution CSV uploads: parses the report and returns the
entries with per-platform totals. Nothing is persisted.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, File, HTTPException, UploadFile, status

from app.schemas.imports import (
    DistributionEntry,
    DistributionImportResponse,
    ImportErrorDetail,
    PlatformSummaryResponse,
)
from app.services.parsers.distribution import DistributionParser
from app.services.platform_summary import summarize_by_platform

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/imports", tags=["imports"])

MAX_CSV_BYTES = 10 * 1024 * 1024


@router.post("/distribution", response_model=DistributionImportResponse)
async def import_distribution_csv(
    file: Annotated[UploadFile, File()],
) -> DistributionImportResponse:
    """Parse a distribution report CSV and summarize it per platform."""
    content = await file.read()
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty",
        )
    if len(content) > MAX_CSV_BYTES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="File too large. Max 10MB.",
        )

    result = DistributionParser().parse(content)

    # A header-level error means nothing could be read
    header_errors = [e for e in result.errors if e.row_number == 0]
    if header_errors:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=header_errors[0].error,
        )

    logger.info(
        f"Parsed distribution CSV {file.filename}: {len(result.rows)} rows, "
        f"{len(result.errors)} errors"
    )

    return DistributionImportResponse(
        filename=file.filename,
        total_rows=result.total_rows,
        rows_parsed=len(result.rows),
        errors_count=len(result.errors),
        entries=[DistributionEntry.model_validate(row) for row in result.rows],
        errors=[
            ImportErrorDetail(row_number=e.row_number, error=e.error, raw_data=e.raw_data)
            for e in result.errors
        ],
        platforms=[
            PlatformSummaryResponse.model_validate(summary)
            for summary in summarize_by_platform(result.rows)
        ],
    )
