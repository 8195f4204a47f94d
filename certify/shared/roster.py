"""Spreadsheet-backed participant roster.

The roster is a plain spreadsheet (first worksheet of an ``.xlsx`` file, or a
``.csv`` file) whose first row holds column headers. Rows are read into
:class:`RosterEntry` objects and memoized per path for a fixed time-to-live.
"""

from __future__ import annotations

import csv
import logging
import os
import re
import time
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Iterator, Sequence
from zipfile import BadZipFile

from flask import current_app
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

logger = logging.getLogger("certify.roster")

DEFAULT_CACHE_TTL_SECONDS = 5 * 60

_SUPPORTED_EXTENSIONS = {".xlsx", ".xlsm", ".csv"}

# canonical header -> field
HEADER_ALIASES: dict[str, str] = {
    "name": "name",
    "fullname": "name",
    "participantname": "name",
    "email": "email",
    "emailaddress": "email",
    "emailid": "email",
    "mail": "email",
    "teamid": "team_id",
    "teamno": "team_id",
    "teamnumber": "team_id",
    "teamname": "team_name",
    "team": "team_name",
}

REQUIRED_FIELDS = ("name", "email", "team_id")


class RosterError(Exception):
    """Raised when the roster file cannot be read."""


@dataclass(frozen=True)
class RosterEntry:
    name: str
    email: str
    team_id: str
    team_name: str

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "email": self.email,
            "teamId": self.team_id,
            "teamName": self.team_name,
        }


_roster_cache: dict[str, tuple[float, list[RosterEntry]]] = {}


def canonical_header(value) -> str:
    return re.sub(r"[^a-z0-9]", "", str(value or "").lower())


def cell_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).upper()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value).strip()


def _map_headers(header_row: Sequence) -> dict[str, int]:
    columns: dict[str, int] = {}
    for index, header in enumerate(header_row):
        field = HEADER_ALIASES.get(canonical_header(header))
        if field and field not in columns:
            columns[field] = index
    missing = [field for field in REQUIRED_FIELDS if field not in columns]
    if missing:
        raise RosterError(
            "Roster is missing required columns: " + ", ".join(missing)
        )
    return columns


def _entries_from_rows(rows: Iterable[Sequence]) -> list[RosterEntry]:
    iterator = iter(rows)
    header_row = next(iterator, None)
    if header_row is None:
        return []
    columns = _map_headers(header_row)

    def pick(row: Sequence, field: str) -> str:
        index = columns.get(field)
        if index is None or index >= len(row):
            return ""
        return cell_text(row[index])

    entries: list[RosterEntry] = []
    for row in iterator:
        if not row or all(cell_text(cell) == "" for cell in row):
            continue
        entries.append(
            RosterEntry(
                name=pick(row, "name"),
                email=pick(row, "email"),
                team_id=pick(row, "team_id"),
                team_name=pick(row, "team_name"),
            )
        )
    return entries


def _iter_xlsx_rows(path: str) -> Iterator[tuple]:
    try:
        workbook = load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, BadZipFile, OSError, KeyError) as exc:
        raise RosterError(f"Could not open roster workbook {path}: {exc}") from exc
    try:
        sheet = workbook.worksheets[0]
        yield from sheet.iter_rows(values_only=True)
    finally:
        workbook.close()


def _iter_csv_rows(path: str) -> Iterator[list[str]]:
    with open(path, newline="", encoding="utf-8-sig") as handle:
        yield from csv.reader(handle)


def read_roster(path: str) -> list[RosterEntry]:
    """Read every participant row from ``path``."""
    if not path or not os.path.isfile(path):
        raise RosterError(f"Roster file not found: {path}")
    ext = os.path.splitext(path)[1].lower()
    if ext not in _SUPPORTED_EXTENSIONS:
        raise RosterError(f"Unsupported roster format: {ext or path}")
    rows = _iter_csv_rows(path) if ext == ".csv" else _iter_xlsx_rows(path)
    try:
        return _entries_from_rows(rows)
    except (UnicodeDecodeError, csv.Error) as exc:
        raise RosterError(f"Could not read roster {path}: {exc}") from exc


def get_roster(path: str | None = None, ttl: float | None = None) -> list[RosterEntry]:
    """Return the cached roster, reloading it once ``ttl`` seconds have passed."""
    if path is None:
        path = current_app.config["ROSTER_PATH"]
    if ttl is None:
        ttl = current_app.config.get("ROSTER_CACHE_TTL", DEFAULT_CACHE_TTL_SECONDS)
    key = os.path.realpath(path)
    now = time.time()
    cached = _roster_cache.get(key)
    if cached and now - cached[0] < ttl:
        logger.debug("[ROSTER] cache hit path=%s rows=%d", key, len(cached[1]))
        return cached[1]
    entries = read_roster(path)
    _roster_cache[key] = (now, entries)
    logger.info("[ROSTER] loaded rows=%d path=%s", len(entries), key)
    return entries


def clear_roster_cache() -> None:
    _roster_cache.clear()
