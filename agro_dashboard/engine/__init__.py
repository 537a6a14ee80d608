"""Engine components: record store → filter → facets → export."""

from .facets import Facets, extract_facets
from .filters import QuickFilter, filter_announcements, parse_date, quick_filters_from_stats
from .models import (
    Announcement,
    ContactInfo,
    FilterCriteria,
    ScrapeStatus,
    StatsSnapshot,
    StatusFilter,
)
from .store import RecordStore, coerce_announcements

__all__ = [
    "Announcement",
    "ContactInfo",
    "Facets",
    "FilterCriteria",
    "QuickFilter",
    "RecordStore",
    "ScrapeStatus",
    "StatsSnapshot",
    "StatusFilter",
    "coerce_announcements",
    "extract_facets",
    "filter_announcements",
    "parse_date",
    "quick_filters_from_stats",
]
