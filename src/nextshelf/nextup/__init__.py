"""Next-up ("continue watching") resolution."""

from nextshelf.nextup.aggregator import NextUpService
from nextshelf.nextup.models import (
    NEVER_STARTED,
    PLAYED_NEVER_DATED,
    NextUpCandidate,
    NextUpQuery,
    NextUpResult,
)
from nextshelf.nextup.ordering import aired_order_key, sort_aired_order
from nextshelf.nextup.resolver import SeriesNextUpResolver

__all__ = [
    # Services
    "NextUpService",
    "SeriesNextUpResolver",
    # Models
    "NextUpQuery",
    "NextUpCandidate",
    "NextUpResult",
    "NEVER_STARTED",
    "PLAYED_NEVER_DATED",
    # Ordering
    "aired_order_key",
    "sort_aired_order",
]
