"""Command line dashboard for scraped EspaceAgro business announcements."""

__version__ = "0.1.0"
