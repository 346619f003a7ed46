"""Tests for distribution report parsing and the import endpoint."""
from __future__ import annotations

from decimal import Decimal

import httpx
import pytest

from app.main import app
from app.services.parsers.distribution import DistributionParser, DistributionRow, ParseError
from app.services.platform_summary import summarize_by_platform

REPORT = """Track Name,Artist Name,Platform,Streams,Revenue,Date,Country
Night Drive,Neon Coast,Spotify,"1,200",$4.80,2025-01,FR
Night Drive,Neon Coast,Apple Music,300,2.10,2025-01,FR
Overpass,Neon Coast,Spotify,800,3.20,2025-01,DE
,Neon Coast,Spotify,10,0.04,2025-01,DE

Low Tide,Harbor Lights,Deezer,50,(0.25),2025-01,BE
"""


@pytest.fixture
async def client():
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


def test_parse_report():
    result = DistributionParser().parse(REPORT)

    assert result.total_rows == 5
    assert len(result.rows) == 4
    assert len(result.errors) == 1

    first = result.rows[0]
    assert first.row_number == 2
    assert first.track_name == "Night Drive"
    assert first.stream_count == 1200
    assert first.revenue == Decimal("4.80")
    assert first.extra == {"Country": "FR"}

    assert result.rows[-1].revenue == Decimal("-0.25")
    assert result.errors[0].row_number == 5
    assert result.errors[0].raw_data["Platform"] == "Spotify"


def test_parse_header_aliases_and_bom():
    content = "\ufeffSong Title,Artist,Store,Plays,Earnings,Period\nA,B,Tidal,7,0.07,2025-02\n"
    result = DistributionParser().parse(content.encode("utf-8"))
    assert result.errors == []
    assert result.rows[0].platform == "Tidal"
    assert result.rows[0].stream_count == 7


def test_parse_missing_headers():
    items = list(DistributionParser().parse_iter("Track Name,Platform\nA,Spotify\n"))
    assert len(items) == 1
    assert isinstance(items[0], ParseError)
    assert items[0].row_number == 0
    assert "Missing required CSV headers" in items[0].error


def test_parse_garbage_numbers_count_as_zero():
    content = "Track Name,Artist Name,Platform,Streams,Revenue,Date\nA,B,Spotify,n/a,free,2025-01\n"
    row = DistributionParser().parse(content).rows[0]
    assert row.stream_count == 0
    assert row.revenue == Decimal("0")


def test_summarize_by_platform():
    rows = DistributionParser().parse(REPORT).rows
    summaries = summarize_by_platform(rows)

    assert [s.platform for s in summaries] == ["Spotify", "Apple Music", "Deezer"]
    spotify = summaries[0]
    assert spotify.total_revenue == Decimal("8.00")
    assert spotify.total_streams == 2000
    assert spotify.track_count == 2


def test_summarize_nothing():
    assert summarize_by_platform([]) == []


def test_summary_counts_tracks_once():
    rows = [
        DistributionRow(2, "A", "X", "Spotify", 10, Decimal("1"), "2025-01"),
        DistributionRow(3, "A", "X", "Spotify", 5, Decimal("1"), "2025-02"),
    ]
    assert summarize_by_platform(rows)[0].track_count == 1


async def test_import_endpoint(client):
    response = await client.post(
        "/imports/distribution",
        files={"file": ("report.csv", REPORT.encode("utf-8"), "text/csv")},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["filename"] == "report.csv"
    assert body["rows_parsed"] == 4
    assert body["errors_count"] == 1
    assert body["entries"][0]["track_name"] == "Night Drive"
    assert body["platforms"][0]["platform"] == "Spotify"
    assert body["platforms"][0]["track_count"] == 2


async def test_import_empty_file(client):
    response = await client.post(
        "/imports/distribution",
        files={"file": ("report.csv", b"", "text/csv")},
    )
    assert response.status_code == 400


async def test_import_bad_headers(client):
    response = await client.post(
        "/imports/distribution",
        files={"file": ("report.csv", b"Name,Amount\nA,1\n", "text/csv")},
    )
    assert response.status_code == 400
    assert "Missing required CSV headers" in response.json()["detail"]
