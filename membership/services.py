from __future__ import annotations

"""
Process-level clients, built once by the application factory and torn down
by its lifespan. Handlers reach them through ``deps``.
"""

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Union

from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker

from .attendance_store import AttendanceStore, InMemoryAttendanceStore, open_google_attendance_store
from .config import Settings
from .database import make_engine, make_session_factory
from .mailer import FakeMailer, Mailer, MailgunMailer
from .qr import InMemoryQRStorage, QRStorage, S3QRStorage


logger = logging.getLogger(__name__)

DEFAULT_MEMORY_HEADER = ["Name", "-", "Email"]


class SpreadsheetLocks:
    """One lock per spreadsheet id, so check-ins on the same sheet serialize."""

    def __init__(self) -> None:
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def for_sheet(self, sheet_key: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(sheet_key)
            if lock is None:
                lock = self._locks[sheet_key] = threading.Lock()
            return lock


@dataclass
class Services:
    settings: Settings
    engine: Engine
    session_factory: sessionmaker
    qr_storage: QRStorage
    mailer: Mailer
    memory_attendance: Optional[InMemoryAttendanceStore] = None
    checkin_locks: SpreadsheetLocks = field(default_factory=SpreadsheetLocks)

    def attendance_store(self, token: Union[str, Mapping[str, Any]]) -> AttendanceStore:
        if self.settings.attendance_backend == "memory":
            if self.memory_attendance is None:
                self.memory_attendance = InMemoryAttendanceStore([DEFAULT_MEMORY_HEADER])
            return self.memory_attendance
        return open_google_attendance_store(token, self.settings)

    def checkin_lock(self) -> Optional[threading.Lock]:
        if not self.settings.serialize_checkins:
            return None
        return self.checkin_locks.for_sheet(self.settings.spreadsheet_id or "memory")

    def close(self) -> None:
        self.mailer.close()
        self.engine.dispose()


def build_qr_storage(settings: Settings) -> QRStorage:
    if settings.qr_storage_provider == "memory":
        return InMemoryQRStorage()
    return S3QRStorage(bucket=settings.s3_bucket, region=settings.aws_region)


def build_mailer(settings: Settings) -> Mailer:
    if settings.mail_provider == "fake":
        return FakeMailer()
    if not settings.mailgun_api_key:
        raise RuntimeError("Mailgun API key not configured")
    return MailgunMailer(
        api_key=settings.mailgun_api_key,
        domain=settings.mailgun_domain,
        from_email=settings.from_email,
        base_url=settings.mailgun_base_url,
    )


def build_services(settings: Settings) -> Services:
    engine = make_engine(settings.database_url)
    services = Services(
        settings=settings,
        engine=engine,
        session_factory=make_session_factory(engine),
        qr_storage=build_qr_storage(settings),
        mailer=build_mailer(settings),
    )
    logger.info(
        "Services ready (storage=%s mail=%s attendance=%s serialize_checkins=%s)",
        settings.qr_storage_provider,
        settings.mail_provider,
        settings.attendance_backend,
        settings.serialize_checkins,
    )
    return services
