"""
Google Sheets client.

Thin wrapper over the Sheets v4 REST API: range reads, appends, positional
overwrites and structural row deletes. It knows nothing about releases.

There is no locking or compare-and-swap in the API. Two writers that read
the same rows and then write by position can overwrite each other.
"""
from __future__ import annotations

import logging
from typing import Any, List, Sequence
from urllib.parse import quote

from app.core.exceptions import NotFound, RemoteRequestRejected
from app.services.google_api import GoogleApiClient, optional_str

logger = logging.getLogger(__name__)

BASE_URL = "https://sheets.googleapis.com/v4/spreadsheets"

# Rows are stored exactly as sent, no formula or date interpretation
VALUE_INPUT_OPTION = "RAW"

# Prefix of the 400 reply Google sends when a range names a missing tab
UNPARSEABLE_RANGE = "Unable to parse range"


def a1_range(sheet_name: str, cells: str) -> str:
    """Build an A1 range. Names are always quoted so "AB12" is not read as a cell."""
    escaped = sheet_name.replace("'", "''")
    return f"'{escaped}'!{cells}"


def _values_url(spreadsheet_id: str, range_spec: str) -> str:
    return f"{BASE_URL}/{quote(spreadsheet_id, safe='')}/values/{quote(range_spec, safe='')}"


def sheet_name_of(range_spec: str) -> str:
    """Tab name of an A1 range, unquoted."""
    name = range_spec.rpartition("!")[0] or range_spec
    if len(name) >= 2 and name.startswith("'") and name.endswith("'"):
        name = name[1:-1].replace("''", "'")
    return name


class SheetsClient(GoogleApiClient):
    """Sheets v4 operations used by the release store."""

    async def _range_request(
        self,
        method: str,
        url: str,
        range_spec: str,
        operation: str,
        **kwargs: Any,
    ) -> dict:
        """Issue a values request; a range naming a missing tab becomes NotFound."""
        try:
            return await self._request(method, url, operation=operation, **kwargs)
        except RemoteRequestRejected as e:
            if UNPARSEABLE_RANGE not in e.message:
                raise
            raise NotFound(
                f'Sheet "{sheet_name_of(range_spec)}" not found in spreadsheet (range {range_spec})',
                operation=operation,
                cause=e,
            ) from e

    async def read_range(self, spreadsheet_id: str, range_spec: str) -> List[List[str]]:
        """Read a range as rows of text cells. Trailing empty cells are omitted by Google."""
        data = await self._range_request(
            "GET",
            _values_url(spreadsheet_id, range_spec),
            range_spec,
            operation="sheets.read_range",
        )
        rows = data.get("values") or []
        logger.info(f"Read {len(rows)} rows from {range_spec}")
        return [[optional_str(cell) for cell in row] for row in rows]

    async def append_row(
        self,
        spreadsheet_id: str,
        range_spec: str,
        row: Sequence[str],
    ) -> None:
        """Append a row after the last occupied row. The new row number is not returned."""
        await self._range_request(
            "POST",
            f"{_values_url(spreadsheet_id, range_spec)}:append",
            range_spec,
            operation="sheets.append_row",
            params={
                "valueInputOption": VALUE_INPUT_OPTION,
                "insertDataOption": "INSERT_ROWS",
            },
            json={"majorDimension": "ROWS", "values": [list(row)]},
        )
        logger.info(f"Appended row to {range_spec}")

    async def write_row(
        self,
        spreadsheet_id: str,
        exact_range: str,
        row: Sequence[str],
    ) -> None:
        """Overwrite exactly one row. The caller computes the 1-based row number."""
        await self._range_request(
            "PUT",
            _values_url(spreadsheet_id, exact_range),
            exact_range,
            operation="sheets.write_row",
            params={"valueInputOption": VALUE_INPUT_OPTION},
            json={"range": exact_range, "majorDimension": "ROWS", "values": [list(row)]},
        )
        logger.info(f"Wrote row {exact_range}")

    async def get_sheet_id(self, spreadsheet_id: str, sheet_name: str) -> int:
        """Resolve a tab's numeric sheetId (gid) from its display name."""
        data = await self._request(
            "GET",
            f"{BASE_URL}/{quote(spreadsheet_id, safe='')}",
            operation="sheets.get_metadata",
            params={"fields": "sheets.properties(sheetId,title)"},
        )
        titles = []
        for sheet in data.get("sheets", []):
            properties = sheet.get("properties", {})
            titles.append(properties.get("title"))
            if properties.get("title") == sheet_name and isinstance(properties.get("sheetId"), int):
                return properties["sheetId"]

        raise NotFound(
            f'Sheet "{sheet_name}" not found in spreadsheet. Available sheets: {titles}',
            operation="sheets.get_metadata",
        )

    async def delete_rows(
        self,
        spreadsheet_id: str,
        sheet_name: str,
        start_index: int,
        count: int = 1,
    ) -> None:
        """
        Remove rows structurally.

        start_index is 0-based over the whole sheet, header included.
        """
        if start_index < 0 or count < 1:
            raise ValueError(f"Invalid row deletion: start={start_index} count={count}")

        sheet_id = await self.get_sheet_id(spreadsheet_id, sheet_name)
        await self._request(
            "POST",
            f"{BASE_URL}/{quote(spreadsheet_id, safe='')}:batchUpdate",
            operation="sheets.delete_rows",
            json={
                "requests": [
                    {
                        "deleteDimension": {
                            "range": {
                                "sheetId": sheet_id,
                                "dimension": "ROWS",
                                "startIndex": start_index,
                                "endIndex": start_index + count,
                            }
                        }
                    }
                ]
            },
        )
        logger.info(
            f"Deleted {count} row(s) at index {start_index} from sheet {sheet_name} (gid {sheet_id})"
        )
