from __future__ import annotations

from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker


Base = declarative_base()


def make_engine(database_url: str) -> Engine:
    engine_kwargs = {"future": True, "pool_pre_ping": True}
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Needed for SQLite when used with threads (FastAPI default)
        connect_args = {"check_same_thread": False}
    return create_engine(database_url, connect_args=connect_args, **engine_kwargs)


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


def session_scope(session_factory: sessionmaker) -> Iterator[Session]:
    db = session_factory()
    try:
        yield db
    finally:
        db.close()
