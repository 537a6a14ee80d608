"""Configuration package exports."""

from .loader import ConfigLocator, ConfigRepository
from .models import DashboardConfig

__all__ = ["ConfigLocator", "ConfigRepository", "DashboardConfig"]
