"""Exporter SPI and implementations."""

from .base import BaseExporter
from .file_exporter import CSV_HEADERS, FileExporter, export_filename, render_csv

__all__ = ["BaseExporter", "CSV_HEADERS", "FileExporter", "export_filename", "render_csv"]
