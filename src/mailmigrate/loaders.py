"""Readers for the batch, candidate, exclusion and permission export files."""

from __future__ import annotations

import csv
import logging
from pathlib import Path

from .types import PermissionRecord

LOGGER = logging.getLogger(__name__)
COMMENT_PREFIX = "#"
PERMISSION_HEADER = "mailbox"


class LoaderError(OSError):
    """Raised when an input file cannot be read."""


def read_addresses(path: Path) -> list[str]:
    """Return one address per line, taken from the first CSV column.

    Blank lines and comments are skipped. A first row without an ``@`` is a
    header and skipped too. Duplicates are kept.
    """

    addresses: list[str] = []
    for row in _read_rows(path, ","):
        value = row[0].strip() if row else ""
        if not value or value.startswith(COMMENT_PREFIX):
            continue
        if not addresses and "@" not in value:
            LOGGER.debug("Skipping header row '%s' in %s", value, path)
            continue
        addresses.append(value)
    return addresses


def read_permissions(path: Path, delimiter: str = ",") -> list[PermissionRecord]:
    """Parse a permission export into records; short rows are padded with empty fields."""

    records: list[PermissionRecord] = []
    for line_no, row in enumerate(_read_rows(path, delimiter), start=1):
        if not any(field.strip() for field in row):
            continue
        first = row[0].strip()
        if first.startswith(COMMENT_PREFIX):
            continue
        if line_no == 1 and first.lower() == PERMISSION_HEADER:
            continue
        if len(row) < 6:
            LOGGER.debug("Short permission row %s:%s padded (%s field(s))", path, line_no, len(row))
        records.append(PermissionRecord.from_row(row))
    return records


def _read_rows(path: Path, delimiter: str) -> list[list[str]]:
    source = path.expanduser()
    if not source.is_file():
        raise LoaderError(f"Input file not found: {source}")
    try:
        with source.open("r", encoding="utf-8-sig", newline="") as handle:
            return list(csv.reader(handle, delimiter=delimiter))
    except OSError as exc:
        raise LoaderError(f"Failed to read {source}: {exc}") from exc
    except csv.Error as exc:
        raise LoaderError(f"Malformed CSV in {source}: {exc}") from exc


__all__ = ["LoaderError", "read_addresses", "read_permissions"]
