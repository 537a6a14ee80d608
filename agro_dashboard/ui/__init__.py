"""User interaction helpers."""

from .progress import ProgressActivity

__all__ = ["ProgressActivity"]
