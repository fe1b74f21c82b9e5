"""
Database handle for transactional data (links) and the click event log.

A single ``Database`` is built at process start (API lifespan or worker
``main()``), handed to every store that needs it and disposed on shutdown.
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, declarative_base, sessionmaker

# Base class for models
Base = declarative_base()


class Database:
    """
    Owns the SQLAlchemy engine and session factory.

    Sessions are short-lived: stores open one per operation via ``session()``,
    which makes the handle safe to share between the event loop and the
    worker threads that record clicks.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        is_sqlite = url.startswith("sqlite")

        connect_args = {"check_same_thread": False, "timeout": 30} if is_sqlite else {}
        self.engine = create_engine(
            url,
            connect_args=connect_args,
            pool_pre_ping=True,
            echo=echo,
        )

        if is_sqlite:
            # WAL lets readers proceed while a click write is in flight
            @event.listens_for(self.engine, "connect")
            def set_sqlite_pragma(dbapi_conn, connection_record):
                cursor = dbapi_conn.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.close()

        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )

    def create_all(self) -> None:
        """Create all tables (idempotent)"""
        # Import models so they are registered with Base
        from snaplink_app import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        """Drop all tables (tests only)"""
        Base.metadata.drop_all(bind=self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Yield a session that is always closed afterwards"""
        db = self.SessionLocal()
        try:
            yield db
        finally:
            db.close()

    def close(self) -> None:
        """Dispose the connection pool"""
        self.engine.dispose()
