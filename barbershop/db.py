# barbershop/db.py

import logging
from contextlib import contextmanager
from typing import Type

from sqlalchemy import event
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlmodel import SQLModel, Session, create_engine

from .config import settings
from .errors import (
    BookingError,
    BookingTimeoutError,
    ConflictError,
    InvalidValueError,
    NotFoundError,
    StoreError,
)

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def make_engine(url: str, echo: bool = False, **kwargs):
    connect_args = kwargs.pop("connect_args", {})
    if url.startswith("sqlite"):
        # required for SQLite + FastAPI's threadpool
        connect_args.setdefault("check_same_thread", False)
    engine = create_engine(url, echo=echo, connect_args=connect_args, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


engine = make_engine(settings.database_url, echo=settings.database_echo)


def init_db(bind=None) -> None:
    # Table classes must be registered on the metadata before create_all.
    from . import models  # noqa: F401

    SQLModel.metadata.create_all(bind or engine)


# Dependency: one session per request
def get_session():
    with Session(engine) as session:
        yield session


@contextmanager
def store_errors(
    unique: Type[BookingError] = ConflictError,
    foreign_key: Type[BookingError] = NotFoundError,
    message: str = "",
):
    """
    Translate SQLAlchemy failures raised inside the block into domain errors.

    ``unique`` picks the error for UNIQUE violations, so callers can report a
    second chief as a role conflict rather than a generic conflict.
    ``foreign_key`` does the same for FOREIGN KEY violations: a missing parent
    on insert, or a row that is still referenced on delete.
    """
    try:
        yield
    except IntegrityError as exc:
        text = str(exc.orig).lower()
        if "unique" in text:
            raise unique(message or "Record already exists") from exc
        if "foreign key" in text:
            raise foreign_key(
                message or "Referenced record does not exist or is still in use"
            ) from exc
        if "check" in text:
            raise InvalidValueError(message or f"Value rejected by the store: {exc.orig}") from exc
        raise StoreError(f"Integrity error: {exc.orig}") from exc
    except OperationalError as exc:
        if "locked" in str(exc.orig).lower():
            raise BookingTimeoutError("The store is busy, try again") from exc
        logger.error("Store operation failed: %s", exc)
        raise StoreError("The store is unavailable") from exc
    except SQLAlchemyError as exc:
        logger.error("Store operation failed: %s", exc)
        raise StoreError("The store is unavailable") from exc
