"""Client-side filter engine turning the record store into a filtered view."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Callable

from .models import ALL, Announcement, FilterCriteria, StatsSnapshot, StatusFilter

# Non-ISO forms are day first
_DATE_FORMATS = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%Y/%m/%d", "%d.%m.%Y")


def parse_date(value: Any) -> date | None:
    """Parse a calendar date; return ``None`` when the value is unusable."""

    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value or "").strip()
    if not text:
        return None
    normalized = text[:-1] + "+00:00" if text.endswith("Z") else text
    try:
        return datetime.fromisoformat(normalized).date()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


@dataclass(frozen=True, slots=True)
class _Bound:
    """A parsed date bound; ``valid`` is False when the raw text did not parse."""

    value: date | None
    valid: bool

    @classmethod
    def from_text(cls, text: str) -> "_Bound | None":
        if not text:
            return None
        parsed = parse_date(text)
        return cls(parsed, parsed is not None)


def build_predicate(criteria: FilterCriteria) -> Callable[[Announcement], bool]:
    """Compile criteria once into a per-record predicate."""

    search = criteria.search.lower()
    product = criteria.product.lower() if criteria.product != ALL else None
    company = criteria.company.lower()
    wanted_type = criteria.type
    wanted_location = criteria.location
    status = criteria.status
    lower_bound = _Bound.from_text(criteria.date_from)
    upper_bound = _Bound.from_text(criteria.date_to)

    def predicate(record: Announcement) -> bool:
        if search and not any(
            search in text.lower()
            for text in (
                record.announcement_title,
                record.description,
                record.location,
                record.products,
                record.company_name,
            )
        ):
            return False
        if wanted_type != ALL and record.announcement_type != wanted_type:
            return False
        if wanted_location != ALL and record.location != wanted_location:
            return False
        if product is not None and product not in record.products.lower():
            return False
        if status is StatusFilter.CHECKED and record.checked != 1:
            return False
        if status is StatusFilter.UNCHECKED and record.checked != 0:
            return False
        if lower_bound is not None or upper_bound is not None:
            record_date = parse_date(record.announcement_date)
            if lower_bound is not None and not _satisfies(record_date, lower_bound, lower=True):
                return False
            if upper_bound is not None and not _satisfies(record_date, upper_bound, lower=False):
                return False
        if company and company not in record.company_name.lower():
            return False
        return True

    return predicate


def _satisfies(record_date: date | None, bound: _Bound, *, lower: bool) -> bool:
    # An unparseable date on either side never satisfies an active bound
    if record_date is None or not bound.valid:
        return False
    if lower:
        return record_date >= bound.value
    return record_date <= bound.value


def matches(record: Announcement, criteria: FilterCriteria) -> bool:
    return build_predicate(criteria)(record)


def filter_announcements(records: Any, criteria: FilterCriteria | None = None) -> list[Announcement]:
    """Return the records matching every active criterion, in store order.

    Anything other than a list or tuple of records yields an empty view.
    """

    if not isinstance(records, (list, tuple)):
        return []
    predicate = build_predicate(criteria or FilterCriteria())
    return [record for record in records if predicate(record)]


@dataclass(frozen=True, slots=True)
class QuickFilter:
    """One-click shortcut setting a single criterion to a backend top value."""

    field: str
    value: str
    count: int

    @property
    def label(self) -> str:
        return f"{self.field.capitalize()}: {self.value} ({self.count})"


def quick_filters_from_stats(stats: StatsSnapshot, limit: int = 5) -> list[QuickFilter]:
    """Turn the backend's top products/locations into quick filters."""

    shortcuts: list[QuickFilter] = []
    for field, ranked in (("product", stats.top_products), ("location", stats.top_locations)):
        for entry in list(ranked)[:limit]:
            value = getattr(entry, field)
            if value:
                shortcuts.append(QuickFilter(field=field, value=value, count=entry.count))
    return shortcuts


__all__ = [
    "QuickFilter",
    "build_predicate",
    "filter_announcements",
    "matches",
    "parse_date",
    "quick_filters_from_stats",
]
