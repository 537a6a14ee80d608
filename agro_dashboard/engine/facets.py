"""Distinct filterable values derived from the record store."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable


@dataclass(slots=True)
class Facets:
    """Choices offered by the type/location/product filters."""

    types: list[str] = field(default_factory=list)
    locations: list[str] = field(default_factory=list)
    products: list[str] = field(default_factory=list)


def _unique(values: Iterable[str]) -> list[str]:
    # dict keeps first-occurrence order
    return list(dict.fromkeys(value for value in values if value))


def split_products(raw: str | None) -> list[str]:
    return [token.strip() for token in (raw or "").split(",") if token.strip()]


def extract_facets(records: Any) -> Facets:
    if not isinstance(records, (list, tuple)):
        return Facets()
    return Facets(
        types=_unique(record.announcement_type for record in records),
        locations=_unique(record.location for record in records),
        products=_unique(
            token for record in records for token in split_products(record.products)
        ),
    )


__all__ = ["Facets", "extract_facets", "split_products"]
