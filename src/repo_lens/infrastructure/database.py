"""SQLite schema and session factory (SQLAlchemy)."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from sqlalchemy import Column, DateTime, Float, Integer, String, Text, create_engine, event
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql import func

logger = logging.getLogger(__name__)

Base = declarative_base()


class ChatRow(Base):
    __tablename__ = "chats"

    id = Column(Integer, primary_key=True, autoincrement=True)
    repo_id = Column(String, nullable=False, index=True)
    role = Column(String, nullable=False)
    content = Column(Text, nullable=False)
    timestamp = Column(DateTime, nullable=False, server_default=func.now())
    provider = Column(String, nullable=True)
    model = Column(String, nullable=True)


class CacheRow(Base):
    __tablename__ = "cache_entries"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    expires_at = Column(Float, nullable=False, index=True)


class ProviderSettingRow(Base):
    __tablename__ = "provider_settings"

    provider = Column(String, primary_key=True)
    api_key = Column(Text, nullable=True)
    model = Column(String, nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class PreferenceRow(Base):
    __tablename__ = "preferences"

    key = Column(String, primary_key=True)
    value = Column(String, nullable=False)


def create_engine_for(database_url: str) -> Engine:
    """Create the engine, making sure the SQLite file's directory exists."""
    url = make_url(database_url)
    is_sqlite = url.get_backend_name() == "sqlite"
    in_memory = is_sqlite and url.database in (None, "", ":memory:")

    kwargs: dict[str, Any] = {}
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
    if in_memory:
        kwargs["poolclass"] = StaticPool
    elif is_sqlite:
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)  # type: ignore[arg-type]

    engine = create_engine(database_url, **kwargs)

    if is_sqlite and not in_memory:

        @event.listens_for(engine, "connect")
        def _enable_wal(dbapi_conn, _record):  # type: ignore[no-untyped-def]
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA busy_timeout=30000")
            cursor.close()

    return engine


def create_session_factory(database_url: str) -> sessionmaker:
    """Create tables (if missing) and return a session factory bound to them."""
    engine = create_engine_for(database_url)
    Base.metadata.create_all(bind=engine)
    logger.info("Database ready at %s", engine.url.render_as_string(hide_password=True))
    return sessionmaker(bind=engine, expire_on_commit=False)
