"""
Database connection management for the Trade Services CRM.
Handles SQLAlchemy engine creation, session management, and connection verification.
"""

import os
import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import QueuePool, StaticPool

logger = logging.getLogger(__name__)

# SQLAlchemy Base for model declarations
Base = declarative_base()

# Engine and SessionLocal are created by configure_engine()
engine = None
SessionLocal = None


def normalize_database_url(url):
    """Handle the legacy postgres:// scheme used by some hosting providers."""
    if url and url.startswith('postgres://'):
        return url.replace('postgres://', 'postgresql://', 1)
    return url


def configure_engine(database_url=None, echo=False):
    """
    Create the SQLAlchemy engine and session factory.

    SQLite URLs (used for development and tests) share a single connection
    so that in-memory databases survive across sessions and threads.
    """
    global engine, SessionLocal

    url = normalize_database_url(database_url or os.environ.get('DATABASE_URL'))
    if not url:
        logger.error("DATABASE_URL is not set!")
        raise RuntimeError(
            "DATABASE_URL not configured. Please set the DATABASE_URL environment variable."
        )

    if engine is not None:
        engine.dispose()

    try:
        if url.startswith('sqlite'):
            engine = create_engine(
                url,
                connect_args={'check_same_thread': False},
                poolclass=StaticPool,
                echo=echo
            )
        else:
            engine = create_engine(
                url,
                poolclass=QueuePool,
                pool_size=5,
                max_overflow=10,
                pool_pre_ping=True,  # Verify connections before using
                pool_recycle=300,    # Recycle connections after 5 minutes
                echo=echo
            )
    except Exception as e:
        logger.error(f"Failed to create database engine: {e}")
        raise RuntimeError(f"Failed to connect to database: {e}")

    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, expire_on_commit=False)
    logger.info(f"Database engine created ({engine.dialect.name})")
    return engine


def get_engine():
    """Get the SQLAlchemy engine, creating it from the environment if needed."""
    if engine is None:
        configure_engine()
    return engine


def get_session_factory():
    """Get or create the session factory."""
    if SessionLocal is None:
        configure_engine()
    return SessionLocal


@contextmanager
def get_db_session():
    """
    Context manager for getting a database session.
    Commits on success, rolls back on any exception.

    Example:
        with get_db_session() as db:
            contacts = db.query(Contact).all()
    """
    session_factory = get_session_factory()
    db = session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def check_db_connection():
    """
    Verify that the database connection is working.
    Returns True if connection is successful, raises exception otherwise.
    """
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        raise RuntimeError(f"Cannot connect to database: {e}")


def init_db():
    """
    Create all tables that do not exist yet.
    Production schemas are managed by alembic; this covers development and tests.
    """
    from database import models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())
    logger.info("Database tables created/verified")

