"""Database session management with connection pooling"""

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from inventory_ledger.config import Settings
from inventory_ledger.domain.exceptions import InternalStorageError
from inventory_ledger.infrastructure.database.models import Base

logger = logging.getLogger(__name__)


def build_engine(settings: Settings) -> Engine:
    """Create an engine; pooling options only apply to server databases"""
    if settings.database_url.startswith("sqlite"):
        return create_engine(settings.database_url, connect_args={"check_same_thread": False})

    return create_engine(
        settings.database_url,
        pool_pre_ping=True,  # Verify connections before using
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_recycle=settings.db_pool_recycle_seconds,
    )


class Database:
    """Storage handle shared by the API and the interest scheduler"""

    def __init__(self, engine: Engine):
        self.engine = engine
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        return cls(build_engine(settings))

    def create_tables(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    @contextmanager
    def session(self) -> Iterator[Session]:
        db = self.session_factory()
        try:
            yield db
        finally:
            db.close()

    def dispose(self) -> None:
        self.engine.dispose()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """
    Run a block as one transaction: commit on success, roll back on any error.

    Storage failures surface as InternalStorageError; domain errors propagate
    unchanged after the rollback.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Storage error, transaction rolled back: {e}")
        raise InternalStorageError("Storage operation failed") from e
    except Exception:
        db.rollback()
        raise


def get_db(request: Request) -> Iterator[Session]:
    """Dependency injection for database sessions"""
    database: Database = request.app.state.database
    db = database.session_factory()
    try:
        yield db
    finally:
        db.close()
