"""Catalog overview helpers used by the releases dashboard."""
from collections import Counter
from typing import List, Optional

from app.schemas.releases import ArtistReleaseCount, CatalogDashboard, Release

DASHBOARD_LIMIT = 10


def search_releases(releases: List[Release], search: Optional[str]) -> List[Release]:
    """Case-insensitive substring match on title or artist."""
    if not search or not search.strip():
        return releases
    term = search.strip().lower()
    return [r for r in releases if term in r.title.lower() or term in r.artist.lower()]


def latest_releases(releases: List[Release], limit: int = DASHBOARD_LIMIT) -> List[Release]:
    """Most recent releases first, by release date."""
    return sorted(releases, key=lambda r: r.release_date, reverse=True)[:limit]


def top_artists(releases: List[Release], limit: int = DASHBOARD_LIMIT) -> List[ArtistReleaseCount]:
    """Artists with the most releases. Ties keep first-seen order."""
    counts = Counter(r.artist for r in releases)
    return [
        ArtistReleaseCount(artist=artist, count=count)
        for artist, count in counts.most_common(limit)
    ]


def build_dashboard(releases: List[Release]) -> CatalogDashboard:
    return CatalogDashboard(
        total_releases=len(releases),
        latest_releases=latest_releases(releases),
        top_artists=top_artists(releases),
    )
