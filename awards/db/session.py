"""SQLAlchemy engine, session factory and transaction helpers."""
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, sessionmaker

from awards.core.config import get_settings
from awards.obs import instrument_sqlalchemy_engine


def enable_sqlite_foreign_keys(target: Engine) -> None:
    """Make SQLite honour ON DELETE rules, which it ignores by default."""

    @event.listens_for(target, "connect")
    def _set_pragma(dbapi_connection, _record) -> None:  # type: ignore[no-untyped-def]
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


settings = get_settings()
engine = create_engine(settings.database_url, pool_pre_ping=True)
if engine.dialect.name == "sqlite":
    enable_sqlite_foreign_keys(engine)
if settings.enable_tracing:
    instrument_sqlalchemy_engine(engine)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_session() -> Iterator[Session]:
    """Provide a transactional scope around a series of operations."""
    session: Session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


class SerializationConflictError(RuntimeError):
    """A concurrent transaction changed the same rows; the action can be retried."""


_RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})


def is_serialization_failure(exc: OperationalError) -> bool:
    return getattr(exc.orig, "sqlstate", None) in _RETRYABLE_SQLSTATES


def begin_serializable(session: Session) -> None:
    """Start a SERIALIZABLE transaction on a server database.

    Reads already issued by the session ran in a transaction of their own,
    which is ended first: the isolation level only applies before a
    transaction's first query.
    """

    if session.in_transaction():
        if session.new or session.dirty or session.deleted:
            raise RuntimeError("Serializable transaction entered with pending writes")
        session.commit()
    session.connection(execution_options={"isolation_level": "SERIALIZABLE"})


@contextmanager
def serializable_transaction(session: Session) -> Iterator[None]:
    """Run the enclosed writes as one SERIALIZABLE unit, committing on exit.

    Only reads may happen on the session before entering. Serialization
    failures surface as ``SerializationConflictError``.
    """

    bind = session.get_bind()
    if bind is None:
        raise RuntimeError("Session is not bound to an engine")

    if bind.dialect.name == "sqlite":
        session.execute(text("BEGIN IMMEDIATE"))
    else:
        begin_serializable(session)

    try:
        yield
        session.commit()
    except OperationalError as exc:
        session.rollback()
        if is_serialization_failure(exc):
            raise SerializationConflictError("Another change landed at the same time, try again") from exc
        raise
    except Exception:
        session.rollback()
        raise


__all__ = [
    "SerializationConflictError",
    "SessionLocal",
    "begin_serializable",
    "enable_sqlite_foreign_keys",
    "engine",
    "get_session",
    "is_serialization_failure",
    "serializable_transaction",
]
