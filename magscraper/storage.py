from __future__ import annotations

import csv
import sqlite3
from abc import ABC, abstractmethod
from typing import Sequence

from .models import Record

CSV_HEADER = ("Title", "URL", "Summary", "Date")

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS articles (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    url TEXT,
    summary TEXT,
    date DATETIME,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP
)
"""

_INSERT = "INSERT INTO articles (title, url, summary, date) VALUES (?, ?, ?, ?)"


class ExportError(Exception):
    """Raised when records cannot be written to the sink."""


class ExporterBase(ABC):
    """Abstract base class for all record sinks.

    Subclasses must implement export() to persist one row per record.
    """

    def __init__(self, path: str) -> None:
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    @abstractmethod
    def export(self, records: Sequence[Record]) -> None:
        """Write all records, replacing nothing that already exists."""


class CsvExporter(ExporterBase):
    """Writes records to a CSV file with a Title,URL,Summary,Date header."""

    def export(self, records: Sequence[Record]) -> None:
        try:
            with open(self._path, "w", encoding="utf-8", newline="") as f:
                writer = csv.writer(f)
                writer.writerow(CSV_HEADER)
                for record in records:
                    writer.writerow(
                        [record.title, record.source_url, record.summary, record.observed_at.isoformat()]
                    )
        except OSError as exc:
            raise ExportError(f"failed to write CSV file {self._path}: {exc}") from exc


class SqliteExporter(ExporterBase):
    """Appends records to an ``articles`` table inside one transaction."""

    def export(self, records: Sequence[Record]) -> None:
        try:
            conn = sqlite3.connect(self._path)
        except sqlite3.Error as exc:
            raise ExportError(f"failed to open database {self._path}: {exc}") from exc
        try:
            conn.execute(_CREATE_TABLE)
            with conn:
                conn.executemany(
                    _INSERT,
                    [(r.title, r.source_url, r.summary, r.observed_at.isoformat()) for r in records],
                )
        except sqlite3.Error as exc:
            raise ExportError(f"failed to insert articles into {self._path}: {exc}") from exc
        finally:
            conn.close()


def create_exporter(fmt: str, output: str) -> ExporterBase:
    """Build the exporter for ``fmt``; ``output`` is the path without extension."""
    if fmt == "csv":
        return CsvExporter(output + ".csv")
    if fmt == "sqlite":
        return SqliteExporter(output + ".db")
    raise ValueError(f"Unsupported export format: {fmt}")
