"""In-memory record store replaced wholesale on every refresh."""

from __future__ import annotations

from threading import Lock
from typing import Any, Callable, Iterable

import structlog
from pydantic import ValidationError

from .models import Announcement


def coerce_announcements(
    payload: Any, logger: structlog.BoundLogger | None = None
) -> list[Announcement]:
    """Validate a raw ``/api/announcements`` payload.

    Non-list payloads become an empty list; invalid items are skipped.
    """

    logger = logger or structlog.get_logger("agro_dashboard.store")
    if not isinstance(payload, list):
        logger.warning("announcements_payload_not_a_list", payload_type=type(payload).__name__)
        return []
    records: list[Announcement] = []
    for index, item in enumerate(payload):
        if isinstance(item, Announcement):
            records.append(item)
            continue
        try:
            records.append(Announcement.model_validate(item))
        except ValidationError as exc:
            logger.warning("announcement_skipped", index=index, errors=exc.error_count())
    return records


class RecordStore:
    """Hold the current snapshot of announcements.

    Refreshes are sequenced by a generation counter: a refresh obtains a
    ticket from :meth:`begin_refresh` and only the most recent ticket may
    :meth:`commit`, so a slow older response cannot overwrite a newer one.
    """

    def __init__(self, records: Iterable[Announcement] = ()) -> None:
        self._lock = Lock()
        self._records: tuple[Announcement, ...] = tuple(records)
        self._generation = 0
        self._committed_generation = 0

    @property
    def generation(self) -> int:
        return self._committed_generation

    def snapshot(self) -> list[Announcement]:
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def begin_refresh(self) -> int:
        with self._lock:
            self._generation += 1
            return self._generation

    def commit(self, records: Iterable[Announcement], ticket: int) -> bool:
        """Replace the snapshot if ``ticket`` is still the latest refresh."""

        new_records = tuple(records)
        with self._lock:
            if ticket != self._generation:
                return False
            self._records = new_records
            self._committed_generation = ticket
            return True

    def replace(self, records: Iterable[Announcement]) -> None:
        self.commit(records, self.begin_refresh())

    def get(self, record_id: int) -> Announcement | None:
        with self._lock:
            return next((record for record in self._records if record.id == record_id), None)

    def patch(self, record_id: int, mutate: Callable[[Announcement], Announcement]) -> Announcement | None:
        """Swap one record for ``mutate(record)``; return the previous version."""

        with self._lock:
            for index, record in enumerate(self._records):
                if record.id == record_id:
                    records = list(self._records)
                    records[index] = mutate(record)
                    self._records = tuple(records)
                    return record
        return None

    def restore(self, previous: Announcement) -> None:
        """Put back a record returned by :meth:`patch` (rollback of a failed write)."""

        self.patch(previous.id, lambda _current: previous)


__all__ = ["RecordStore", "coerce_announcements"]
