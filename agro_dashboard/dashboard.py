"""Dashboard state container wiring the API client to the engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

import structlog

from .client import ApiClient
from .engine import (
    Announcement,
    Facets,
    FilterCriteria,
    RecordStore,
    StatsSnapshot,
    extract_facets,
    filter_announcements,
)
from .engine.exporter import FileExporter
from .errors import ApiError, DashboardError, ExportError
from .logging_conf import configure_logging


@dataclass(slots=True)
class ExportResult:
    path: Path
    count: int


class Dashboard:
    """Own the record store, the filter criteria and the latest stats.

    The record store is the only shared mutable state: it is written by
    :meth:`refresh_announcements` and by the single-record patches of
    :meth:`set_checked` / :meth:`save_contact`, and read by everything else.
    """

    def __init__(
        self,
        client: ApiClient,
        store: RecordStore | None = None,
        criteria: FilterCriteria | None = None,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.client = client
        self.store = store or RecordStore()
        self.criteria = criteria or FilterCriteria()
        self.stats = StatsSnapshot()
        self.logger = logger or configure_logging().bind(component="dashboard")

    # ------------------------------------------------------------------
    # Refresh
    # ------------------------------------------------------------------
    def refresh_announcements(self) -> bool:
        """Fetch all records; a failed fetch empties the store instead of leaving it stale.

        Returns False when a newer refresh started meanwhile and this
        response was discarded.
        """

        ticket = self.store.begin_refresh()
        try:
            records = self.client.fetch_announcements()
        except ApiError as exc:
            self.logger.error("announcements_fetch_failed", error=str(exc))
            records = []
        committed = self.store.commit(records, ticket)
        if committed:
            self.logger.info("announcements_refreshed", count=len(records), generation=ticket)
        else:
            self.logger.info("announcements_refresh_superseded", generation=ticket)
        return committed

    def refresh_stats(self) -> StatsSnapshot:
        try:
            self.stats = self.client.fetch_stats()
        except ApiError as exc:
            self.logger.error("stats_fetch_failed", error=str(exc))
        return self.stats

    def refresh(self) -> None:
        self.refresh_announcements()
        self.refresh_stats()

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------
    @property
    def records(self) -> list[Announcement]:
        return self.store.snapshot()

    def filtered_view(self) -> list[Announcement]:
        return filter_announcements(self.store.snapshot(), self.criteria)

    def facets(self) -> Facets:
        return extract_facets(self.store.snapshot())

    def summary_line(self, view: list[Announcement] | None = None) -> str:
        shown = len(self.filtered_view() if view is None else view)
        total = len(self.store)
        line = f"Showing {shown} of {total} announcements"
        if shown != total:
            line += " (Filtered)"
        return line

    # ------------------------------------------------------------------
    # Optimistic writes (rolled back when the request fails)
    # ------------------------------------------------------------------
    def _require(self, announcement_id: int) -> Announcement:
        record = self.store.get(announcement_id)
        if record is None:
            raise DashboardError(f"Announcement {announcement_id} is not loaded")
        return record

    def set_checked(self, announcement_id: int, checked: bool) -> Announcement:
        self._require(announcement_id)
        value = 1 if checked else 0
        previous = self.store.patch(
            announcement_id, lambda record: record.model_copy(update={"checked": value})
        )
        try:
            self.client.set_checked(announcement_id, checked)
        except ApiError as exc:
            self.logger.error("check_toggle_failed", announcement_id=announcement_id, error=str(exc))
            self.store.restore(previous)
            raise
        self.logger.info("check_toggled", announcement_id=announcement_id, checked=value)
        self.refresh_stats()
        return self.store.get(announcement_id)

    def toggle_check(self, announcement_id: int) -> Announcement:
        current = self._require(announcement_id)
        return self.set_checked(announcement_id, not current.is_checked)

    def save_contact(self, announcement_id: int, **changes: str | None) -> Announcement:
        """Merge ``changes`` into the current contact fields and send all eight."""

        current = self._require(announcement_id)
        contact = current.contact().merged(**changes)
        previous = self.store.patch(
            announcement_id, lambda record: record.model_copy(update=contact.model_dump())
        )
        try:
            self.client.update_contact(announcement_id, contact)
        except ApiError as exc:
            self.logger.error("contact_save_failed", announcement_id=announcement_id, error=str(exc))
            self.store.restore(previous)
            raise
        self.logger.info("contact_saved", announcement_id=announcement_id)
        return self.store.get(announcement_id)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    def export(
        self,
        output_dir: Path,
        app_name: str,
        fmt: str = "csv",
        now: datetime | None = None,
    ) -> ExportResult:
        view = self.filtered_view()
        try:
            with FileExporter(output_dir, app_name, fmt, now=now) as exporter:
                count = exporter.export_many(view)
                exporter.flush()
        except OSError as exc:
            self.logger.error("export_failed", output_dir=str(output_dir), error=str(exc))
            raise ExportError(f"Could not write export to {output_dir}: {exc}") from exc
        self.logger.info("export_written", path=str(exporter.path), count=count, format=fmt)
        return ExportResult(path=exporter.path, count=count)


__all__ = ["Dashboard", "ExportResult"]
