"""Pydantic models for announcements, filter criteria and backend stats."""

from __future__ import annotations

from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

ALL = "all"

CONTACT_FIELDS: tuple[str, ...] = (
    "prenom",
    "adresse",
    "cod_postal",
    "ville",
    "mail",
    "tel",
    "web_site",
    "ok",
)


class StatusFilter(str, Enum):
    """Checked-flag constraint of the filter criteria."""

    ALL = "all"
    CHECKED = "checked"
    UNCHECKED = "unchecked"


class Announcement(BaseModel):
    """One scraped business announcement as served by ``/api/announcements``."""

    model_config = ConfigDict(extra="ignore")

    id: int
    member_id: str = ""
    company_name: str = ""
    announcement_title: str = ""
    description: str = ""
    # Raw comma separated list, e.g. "Fruits, Bio"
    products: str = ""
    location: str = ""
    announcement_type: str = ""
    announcement_date: str = ""
    announcement_url: str = ""
    scraped_date: str = ""
    checked: int = 0
    created_at: str = ""

    prenom: str | None = None
    adresse: str | None = None
    cod_postal: str | None = None
    ville: str | None = None
    mail: str | None = None
    tel: str | None = None
    web_site: str | None = None
    ok: str | None = None

    @field_validator(
        "member_id",
        "company_name",
        "announcement_title",
        "description",
        "products",
        "location",
        "announcement_type",
        "announcement_date",
        "announcement_url",
        "scraped_date",
        "created_at",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> str:
        if value is None:
            return ""
        return str(value)

    @field_validator(*CONTACT_FIELDS, mode="before")
    @classmethod
    def _coerce_contact(cls, value: Any) -> str | None:
        if value is None:
            return None
        return str(value)

    @field_validator("checked", mode="before")
    @classmethod
    def _coerce_checked(cls, value: Any) -> int:
        if isinstance(value, bool):
            return int(value)
        if value in (None, ""):
            return 0
        return 1 if int(value) == 1 else 0

    @property
    def is_checked(self) -> bool:
        return self.checked == 1

    def contact(self) -> "ContactInfo":
        return ContactInfo(**{name: getattr(self, name) or "" for name in CONTACT_FIELDS})


class ContactInfo(BaseModel):
    """The eight editable contact fields sent to ``/contact``."""

    prenom: str = ""
    adresse: str = ""
    cod_postal: str = ""
    ville: str = ""
    mail: str = ""
    tel: str = ""
    web_site: str = ""
    ok: str = ""

    def merged(self, **changes: str | None) -> "ContactInfo":
        """Return a copy where every non-None change replaces the current value."""

        updates = {key: value for key, value in changes.items() if value is not None}
        unknown = set(updates) - set(CONTACT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown contact fields: {sorted(unknown)}")
        return self.model_copy(update=updates)


class RankedProduct(BaseModel):
    product: str
    count: int = 0


class RankedLocation(BaseModel):
    location: str
    count: int = 0


class StatsSnapshot(BaseModel):
    """Aggregates computed by the backend; displayed, never recomputed."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    total: int = 0
    checked: int = 0
    unchecked: int = 0
    today: int = 0
    top_products: list[RankedProduct] = Field(
        default_factory=list,
        validation_alias=AliasChoices("topProducts", "top_products"),
    )
    top_locations: list[RankedLocation] = Field(
        default_factory=list,
        validation_alias=AliasChoices("topLocations", "top_locations"),
    )

    @field_validator("top_products", "top_locations", mode="before")
    @classmethod
    def _none_as_empty(cls, value: Any) -> Any:
        return value or []


class ScrapeStatus(BaseModel):
    running: bool = False
    message: str = ""


class FilterCriteria(BaseModel):
    """Active filter values; every field defaults to "no constraint"."""

    model_config = ConfigDict(validate_assignment=True)

    search: str = ""
    type: str = ALL
    location: str = ALL
    product: str = ALL
    status: StatusFilter = StatusFilter.ALL
    date_from: str = ""
    date_to: str = ""
    company: str = ""

    def active_filters(self) -> list[tuple[str, str]]:
        """Return (label, value) pairs for every constraint currently set."""

        active: list[tuple[str, str]] = []
        if self.search:
            active.append(("Search", f"“{self.search}”"))
        if self.type != ALL:
            active.append(("Type", self.type))
        if self.location != ALL:
            active.append(("Location", self.location))
        if self.product != ALL:
            active.append(("Product", self.product))
        if self.status is not StatusFilter.ALL:
            active.append(("Status", self.status.value))
        if self.date_from:
            active.append(("From", self.date_from))
        if self.date_to:
            active.append(("To", self.date_to))
        if self.company:
            active.append(("Company", self.company))
        return active

    def clear(self) -> None:
        for name, field in type(self).model_fields.items():
            setattr(self, name, field.default)

    # Quick filters ---------------------------------------------------
    def toggle_status(self, status: StatusFilter) -> None:
        self.status = StatusFilter.ALL if self.status is status else status

    def only_today(self, today: date | None = None) -> None:
        today = today or datetime.now().date()
        self.date_from = today.isoformat()
        self.date_to = ""

    def last_seven_days(self, today: date | None = None) -> None:
        today = today or datetime.now().date()
        self.date_from = (today - timedelta(days=7)).isoformat()
        self.date_to = today.isoformat()


__all__ = [
    "ALL",
    "CONTACT_FIELDS",
    "Announcement",
    "ContactInfo",
    "FilterCriteria",
    "RankedLocation",
    "RankedProduct",
    "ScrapeStatus",
    "StatsSnapshot",
    "StatusFilter",
]
