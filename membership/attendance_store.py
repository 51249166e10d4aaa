from __future__ import annotations

"""
Attendance sheet access. The sheet is read whole and written back in a
single batch of A1 ranges; no caching, every call hits the backend.
"""

import copy
import logging
import re
import threading
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import gspread
from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials
from gspread.exceptions import GSpreadException

from .config import Settings
from .errors import DependencyError


logger = logging.getLogger(__name__)

GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"
SCOPES = [
    "https://www.googleapis.com/auth/gmail.send",
    "https://www.googleapis.com/auth/spreadsheets",
]

_A1_RE = re.compile(r"^([A-Z]+)([1-9][0-9]*)$")

Table = List[List[str]]


@dataclass(frozen=True)
class CellUpdate:
    range: str
    value: str

    def as_batch_entry(self) -> Dict[str, Any]:
        return {"range": self.range, "values": [[self.value]]}


class AttendanceStore:
    def read_table(self) -> Table:  # pragma: no cover - interface
        raise NotImplementedError

    def write_cells(self, updates: Sequence[CellUpdate]) -> None:  # pragma: no cover - interface
        raise NotImplementedError


class GoogleSheetsAttendanceStore(AttendanceStore):
    def __init__(self, worksheet: gspread.Worksheet) -> None:
        self.worksheet = worksheet

    def read_table(self) -> Table:
        try:
            rows = self.worksheet.get_all_values()
        except (GSpreadException, GoogleAuthError, OSError) as exc:
            raise DependencyError(f"Could not read attendance sheet: {exc}") from exc
        return [[str(cell) for cell in row] for row in rows]

    def write_cells(self, updates: Sequence[CellUpdate]) -> None:
        if not updates:
            return
        try:
            self.worksheet.batch_update([u.as_batch_entry() for u in updates], value_input_option="RAW")
        except (GSpreadException, GoogleAuthError, OSError) as exc:
            raise DependencyError(f"Could not write attendance sheet: {exc}") from exc


def _parse_a1(address: str) -> tuple[int, int]:
    m = _A1_RE.match(address)
    if not m:
        raise ValueError(f"Unsupported cell range: {address!r}")
    letters, row = m.groups()
    col = 0
    for ch in letters:
        col = col * 26 + (ord(ch) - ord("A") + 1)
    return int(row) - 1, col - 1


class InMemoryAttendanceStore(AttendanceStore):
    """Process-local attendance table, used for development and tests."""

    def __init__(self, rows: Optional[Sequence[Sequence[str]]] = None) -> None:
        self._rows: Table = [list(r) for r in rows or []]
        self._mutex = threading.Lock()
        self.reads = 0
        self.writes: List[List[CellUpdate]] = []

    def read_table(self) -> Table:
        with self._mutex:
            self.reads += 1
            return copy.deepcopy(self._rows)

    def write_cells(self, updates: Sequence[CellUpdate]) -> None:
        with self._mutex:
            self.writes.append(list(updates))
            for update in updates:
                row, col = _parse_a1(update.range)
                while len(self._rows) <= row:
                    self._rows.append([])
                cells = self._rows[row]
                while len(cells) <= col:
                    cells.append("")
                cells[col] = update.value

    @property
    def rows(self) -> Table:
        return copy.deepcopy(self._rows)


def google_credentials(token: Union[str, Mapping[str, Any]], settings: Settings) -> Credentials:
    """Build user OAuth credentials from the token the client sent."""
    if isinstance(token, str):
        return Credentials(
            token=token,
            client_id=settings.google_client_id,
            client_secret=settings.google_client_secret,
            token_uri=GOOGLE_TOKEN_URI,
        )
    access_token = token.get("access_token") or token.get("token")
    refresh_token = token.get("refresh_token")
    if not access_token and not refresh_token:
        raise DependencyError("OAuth token has neither access_token nor refresh_token")
    scope = token.get("scope")
    return Credentials(
        token=access_token,
        refresh_token=refresh_token,
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret,
        token_uri=GOOGLE_TOKEN_URI,
        scopes=scope.split() if isinstance(scope, str) and scope else SCOPES,
    )


def open_google_attendance_store(token: Union[str, Mapping[str, Any]], settings: Settings) -> GoogleSheetsAttendanceStore:
    if not settings.spreadsheet_id:
        raise DependencyError("Spreadsheet id not configured")
    try:
        client = gspread.authorize(google_credentials(token, settings))
        spreadsheet = client.open_by_key(settings.spreadsheet_id)
        if settings.worksheet_name:
            worksheet = spreadsheet.worksheet(settings.worksheet_name)
        else:
            worksheet = spreadsheet.sheet1
    except (GSpreadException, GoogleAuthError, OSError) as exc:
        raise DependencyError(f"Could not open attendance sheet: {exc}") from exc
    logger.debug("Opened attendance sheet %s / %s", settings.spreadsheet_id, worksheet.title)
    return GoogleSheetsAttendanceStore(worksheet)
