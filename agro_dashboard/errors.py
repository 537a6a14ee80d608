"""Exception hierarchy shared by the dashboard components."""

from __future__ import annotations


class DashboardError(Exception):
    """Base class for every error raised by agro_dashboard."""


class ApiError(DashboardError):
    """A request to the announcements backend failed."""

    def __init__(self, message: str, *, url: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ScrapeAlreadyRunning(DashboardError):
    """Raised when a scrape is started while another one is being monitored."""


class ScrapingDisabled(DashboardError):
    """Scrape controls are switched off (production deployments)."""


class ExportError(DashboardError):
    """Writing the export file failed."""


__all__ = [
    "ApiError",
    "DashboardError",
    "ExportError",
    "ScrapeAlreadyRunning",
    "ScrapingDisabled",
]
