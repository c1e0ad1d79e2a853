"""
Database schema and connection management.

SQLAlchemy models for companies, jobs, users and their applications.
Any URL SQLAlchemy accepts works: PostgreSQL in production, SQLite for
local use and tests.
"""

import functools
from pathlib import Path
from typing import Union

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    create_engine,
    event,
    false,
)
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .logger import get_logger
from .retry import exponential_backoff, is_transient_error

Base = declarative_base()

APPLICATION_STATES = ("interested", "applied", "accepted", "rejected")


class Company(Base):
    """Employer listing jobs."""

    __tablename__ = "companies"

    handle = Column(String(25), primary_key=True)
    name = Column(Text, nullable=False, unique=True)
    num_employees = Column(Integer, CheckConstraint("num_employees >= 0"))
    description = Column(Text, nullable=False)
    logo_url = Column(Text)


class Job(Base):
    """Job posting, owned by a company."""

    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(Text, nullable=False)
    salary = Column(Integer, CheckConstraint("salary >= 0"))
    equity = Column(Numeric, CheckConstraint("equity <= 1.0"))
    company_handle = Column(
        String(25),
        ForeignKey("companies.handle", ondelete="CASCADE"),
        nullable=False,
    )


class User(Base):
    __tablename__ = "users"

    username = Column(String(25), primary_key=True)
    password = Column(Text, nullable=False)  # hash, never plain text
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    is_admin = Column(Boolean, nullable=False, server_default=false())


class Application(Base):
    """A user's application to a job (many-to-many)."""

    __tablename__ = "applications"

    username = Column(
        String(25), ForeignKey("users.username", ondelete="CASCADE"), primary_key=True
    )
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), primary_key=True)
    current_state = Column(String(25), nullable=False)


def _as_url(database: Union[str, Path]) -> str:
    if isinstance(database, Path):
        return f"sqlite:///{database}"
    return database


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


@functools.lru_cache(maxsize=None)
def get_engine(database_url: str) -> Engine:
    """
    Get (or create) the engine for a database URL.

    SQLite parent directories are created and foreign keys enforced,
    so cascades behave as on PostgreSQL.
    """
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite" and url.database and url.database != ":memory:":
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(database_url)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


def _log_retry(attempt: int, exc: Exception, delay: float) -> None:
    get_logger().warning(
        "Database unavailable, retrying",
        attempt=attempt,
        delay=delay,
        error=str(exc),
    )


@exponential_backoff(
    max_retries=3,
    base_delay=1.0,
    exceptions=(OperationalError,),
    on_retry=_log_retry,
    retry_if=is_transient_error,
)
def _create_tables(engine: Engine) -> None:
    Base.metadata.create_all(engine)


def init_database(database: Union[str, Path]) -> Engine:
    """
    Initialize database and create tables.

    Args:
        database: SQLAlchemy URL, or a Path to a SQLite file

    Returns:
        The engine bound to the database
    """
    engine = get_engine(_as_url(database))
    _create_tables(engine)
    get_logger().info("Database initialized", url=engine.url.render_as_string(hide_password=True))
    return engine


def get_session(database: Union[str, Path]) -> Session:
    """
    Get database session.

    Args:
        database: SQLAlchemy URL, or a Path to a SQLite file

    Returns:
        SQLAlchemy session
    """
    engine = get_engine(_as_url(database))
    SessionLocal = sessionmaker(bind=engine)
    return SessionLocal()


def like_operator_for(session: Session) -> str:
    """ILIKE on PostgreSQL; LIKE elsewhere (SQLite has no ILIKE)."""
    if session.get_bind().dialect.name == "postgresql":
        return "ILIKE"
    return "LIKE"
