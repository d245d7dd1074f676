"""
Database configuration and session management for the authentication service.

This module provides SQLAlchemy engine setup, session management, and schema
creation for the relational user store.
"""
import logging
from contextlib import contextmanager
from typing import Any, Dict, Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Create SQLAlchemy base class for models
Base = declarative_base()


class Database:
    """Database connection and session management."""

    def __init__(self, db_url: str, echo: bool = False):
        """
        Initialize the database connection.

        Args:
            db_url: SQLAlchemy database URL.
            echo: Whether to log emitted SQL.
        """
        engine_kwargs: Dict[str, Any] = {"echo": echo}
        if db_url.startswith("sqlite"):
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            # In-memory SQLite lives in a single connection
            if ":memory:" in db_url or db_url in ("sqlite://", "sqlite+pysqlite://"):
                engine_kwargs["poolclass"] = StaticPool

        self.engine = create_engine(db_url, **engine_kwargs)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_all(self) -> None:
        """Create all tables defined in the models."""
        # Import models so they are registered on the metadata
        from auth_service import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        """Drop all tables. Use with caution, primarily for testing."""
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        """Close every pooled connection."""
        self.engine.dispose()

    def get_session(self) -> Session:
        """
        Get a new database session.

        Returns:
            A new SQLAlchemy session.
        """
        return self.SessionLocal()

    @contextmanager
    def session_scope(self) -> Generator[Session, Any, None]:
        """
        Context manager for database sessions.

        Provides automatic commit/rollback and session closing.

        Yields:
            An active SQLAlchemy session.
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


# PUBLIC_INTERFACE
def init_db(db_url: str, echo: bool = False) -> Database:
    """
    Create a database handle and make sure all required tables exist.

    Args:
        db_url: SQLAlchemy database URL.
        echo: Whether to log emitted SQL.

    Returns:
        The initialized Database.
    """
    database = Database(db_url, echo=echo)
    database.create_all()
    logger.info("Database initialized")
    return database
