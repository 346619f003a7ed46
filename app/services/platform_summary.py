"""Aggregate parsed distribution rows per platform."""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Set

from app.services.parsers.distribution import DistributionRow


@dataclass
class PlatformSummary:
    """Totals for one platform."""
    platform: str
    total_revenue: Decimal = Decimal("0")
    total_streams: int = 0
    tracks: Set[str] = field(default_factory=set)

    @property
    def track_count(self) -> int:
        return len(self.tracks)


def summarize_by_platform(rows: List[DistributionRow]) -> List[PlatformSummary]:
    """Per-platform revenue, streams and distinct tracks, highest revenue first."""
    summaries: Dict[str, PlatformSummary] = {}
    for row in rows:
        summary = summaries.setdefault(row.platform, PlatformSummary(platform=row.platform))
        summary.total_revenue += row.revenue
        summary.total_streams += row.stream_count
        summary.tracks.add(row.track_name)

    return sorted(summaries.values(), key=lambda s: s.total_revenue, reverse=True)
