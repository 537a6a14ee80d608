"""File based exporters producing the dashboard CSV and JSON lines."""

from __future__ import annotations

import json
import re
from datetime import datetime
from pathlib import Path
from typing import Iterable

from ..models import Announcement
from .base import BaseExporter

CSV_HEADERS: tuple[str, ...] = (
    "ID",
    "Company Name",
    "Title",
    "Description",
    "Type",
    "Location",
    "Products",
    "Date",
    "URL",
    "Status",
    "Scraped Date",
    "Prénom",
    "Adresse",
    "Code Postal",
    "Ville",
    "Mail",
    "Téléphone",
    "Web Site",
    "OK",
)


def quote(value: str | None) -> str:
    """Wrap a textual field in double quotes, doubling embedded quotes."""

    text = "" if value is None else str(value)
    return '"' + text.replace('"', '""') + '"'


def status_label(checked: int) -> str:
    return "Checked" if checked == 1 else "Unchecked"


def csv_row(record: Announcement) -> str:
    # id, date, url, status and scraped date are written raw
    fields = [
        str(record.id),
        quote(record.company_name),
        quote(record.announcement_title),
        quote(record.description),
        quote(record.announcement_type),
        quote(record.location),
        quote(record.products),
        record.announcement_date,
        record.announcement_url,
        status_label(record.checked),
        record.scraped_date,
        quote(record.prenom),
        quote(record.adresse),
        quote(record.cod_postal),
        quote(record.ville),
        quote(record.mail),
        quote(record.tel),
        quote(record.web_site),
        quote(record.ok),
    ]
    return ",".join(fields)


def render_csv(records: Iterable[Announcement]) -> str:
    """Return the full CSV payload: header line then one line per record."""

    return "\n".join([",".join(CSV_HEADERS), *(csv_row(record) for record in records)])


def export_filename(app_name: str, fmt: str = "csv", now: datetime | None = None) -> str:
    stamp = (now or datetime.now()).date().isoformat()
    slug = re.sub(r"[^0-9A-Za-z_-]+", "_", app_name.strip()) or "announcements"
    extension = "jsonl" if fmt == "json" else "csv"
    return f"{slug}-{stamp}.{extension}"


class FileExporter(BaseExporter):
    """Write announcements to a dated file under ``output_dir``."""

    def __init__(
        self,
        output_dir: Path,
        app_name: str,
        fmt: str = "csv",
        now: datetime | None = None,
    ) -> None:
        if fmt not in ("csv", "json"):
            raise ValueError(f"Unsupported export format: {fmt}")
        self.output_dir = output_dir
        self.format = fmt
        self.output_dir.mkdir(parents=True, exist_ok=True)
        # "now" is taken once so every row shares the same export date
        self.path = self.output_dir / export_filename(app_name, fmt, now)
        self._file = self.path.open("w", encoding="utf-8", newline="")
        self._counter = 0
        if self.format == "csv":
            self._file.write(",".join(CSV_HEADERS))

    def export(self, record: Announcement) -> None:
        if self.format == "csv":
            self._file.write("\n")
            self._file.write(csv_row(record))
        else:
            json.dump(record.model_dump(mode="json"), self._file, ensure_ascii=False)
            self._file.write("\n")
        self._counter += 1

    @property
    def count(self) -> int:
        return self._counter

    def flush(self) -> None:
        self._file.flush()

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()


__all__ = [
    "CSV_HEADERS",
    "FileExporter",
    "csv_row",
    "export_filename",
    "quote",
    "render_csv",
    "status_label",
]
