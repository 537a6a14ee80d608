"""Background polling of the backend scrape job."""

from .monitor import MonitorState, ScrapeJobMonitor

__all__ = ["MonitorState", "ScrapeJobMonitor"]
