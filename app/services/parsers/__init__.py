from app.services.parsers.distribution import (
    DistributionParser,
    DistributionRow,
    ParseError,
    DistributionParseResult,
)

__all__ = [
    "DistributionParser",
    "DistributionRow",
    "ParseError",
    "DistributionParseResult",
]
