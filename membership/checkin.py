from __future__ import annotations

"""
Check-in against the attendance sheet.

Layout: row 1 holds "Name", a placeholder, "Email" and then one header cell
per event date; each member row holds name, placeholder, email and a marker
under every date the member attended. Date columns are only ever appended.

Without a lock, two first-of-the-day check-ins can both see "no column for
today" and both allocate the next column. With update-in-place writes they
land on the same cell, but nothing guards it; pass a lock (see
``Settings.serialize_checkins``) to run read-decide-write as one unit.
"""

import contextlib
import logging
import threading
from dataclasses import dataclass
from datetime import date
from typing import ContextManager, List, Optional, Sequence

from .attendance_store import AttendanceStore, CellUpdate
from .column_codec import cell_address
from .errors import ConflictError, NotFoundError


logger = logging.getLogger(__name__)

NAME_COL = 0
EMAIL_COL = 2
FIRST_DATE_COL = EMAIL_COL + 1
DEFAULT_MARKER = "yes"

_DAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


class MemberNotFound(NotFoundError):
    payload_key = "body"
    default_message = "Could not find user."


class AlreadyCheckedIn(ConflictError):
    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"{name} already checked in.")


@dataclass(frozen=True)
class CheckInResult:
    name: str
    email: str
    date_label: str
    row: int
    column: int
    created_column: bool


def format_date_label(day: date) -> str:
    """Header label for a calendar day, e.g. "Mon Jan 01 2024".

    Built from fixed English names so it does not depend on the process locale.
    """
    return f"{_DAYS[day.weekday()]} {_MONTHS[day.month - 1]} {day.day:02d} {day.year}"


def _cell(row: Sequence[str], index: int) -> str:
    return row[index] if index < len(row) else ""


def last_populated_index(header: Sequence[str]) -> int:
    populated = [i for i, cell in enumerate(header) if str(cell).strip()]
    return populated[-1] if populated else -1


class CheckInReconciler:
    def __init__(
        self,
        store: AttendanceStore,
        lock: Optional[threading.Lock] = None,
        marker: str = DEFAULT_MARKER,
    ) -> None:
        self.store = store
        self.lock = lock
        self.marker = marker

    def _guard(self) -> ContextManager:
        return self.lock if self.lock is not None else contextlib.nullcontext()

    def check_in(self, email: str, today: date) -> CheckInResult:
        with self._guard():
            return self._check_in(email, today)

    def _check_in(self, email: str, today: date) -> CheckInResult:
        table = self.store.read_table()
        if len(table) < 2:
            logger.info("Attendance sheet has no member rows")
            raise MemberNotFound()

        header = table[0]
        last_index = last_populated_index(header)
        today_label = format_date_label(today)

        for row_index, row in enumerate(table[1:], start=1):
            if _cell(row, EMAIL_COL) != email:
                continue

            name = _cell(row, NAME_COL)
            updates: List[CellUpdate] = []
            if last_index > EMAIL_COL and _cell(header, last_index) == today_label:
                column = last_index
                created = False
                if _cell(row, column) == self.marker:
                    logger.info("Duplicate check-in for %s on %s", email, today_label)
                    raise AlreadyCheckedIn(name)
            else:
                # Dates never go into the fixed name/placeholder/email columns
                column = max(last_index + 1, FIRST_DATE_COL)
                created = True
                updates.append(CellUpdate(cell_address(0, column), today_label))
            updates.append(CellUpdate(cell_address(row_index, column), self.marker))

            self.store.write_cells(updates)
            logger.info(
                "Checked in %s at %s (new_column=%s)", email, cell_address(row_index, column), created
            )
            return CheckInResult(
                name=name,
                email=email,
                date_label=today_label,
                row=row_index,
                column=column,
                created_column=created,
            )

        logger.info("No attendance row for %s", email)
        raise MemberNotFound()
