"""Database connection and session management.

This module wraps the SQLAlchemy engine in an explicitly constructed handle.
The application creates one ``Database`` at startup, stores it on
``app.state`` and disposes it at shutdown.
"""

import logging
from pathlib import Path
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from core.exceptions import StorageError
from models.base import Base
# Import models to ensure they are registered with Base.metadata
import models  # noqa: F401

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the engine and session factory for one database URL."""

    def __init__(self, url: str):
        self.url = url
        self.engine: Optional[Engine] = None
        self.session_factory: Optional[sessionmaker] = None

    def init(self) -> None:
        """Create the engine, session factory and tables."""
        connect_args = {}
        if self.url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            db_path = self.url.split("sqlite:///", 1)[-1]
            if db_path and db_path != ":memory:":
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(self.url, connect_args=connect_args)
        if self.url.startswith("sqlite"):
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self.session_factory = sessionmaker(
            autocommit=False, autoflush=False, bind=self.engine
        )
        Base.metadata.create_all(bind=self.engine)
        logger.info("Database ready: %s", self.engine.url.render_as_string(hide_password=True))

    def close(self) -> None:
        """Dispose of pooled connections."""
        if self.engine is not None:
            self.engine.dispose()
            logger.info("Database connections disposed")
        self.engine = None
        self.session_factory = None

    def session(self) -> Session:
        """Open a new session.

        Raises:
            StorageError: If ``init()`` has not been called.
        """
        if self.session_factory is None:
            raise StorageError("Database is not initialized.")
        return self.session_factory()


def get_db(request: Request) -> Iterator[Session]:
    """Dependency for getting a request-scoped database session."""
    db = request.app.state.database.session()
    try:
        yield db
    finally:
        db.close()
