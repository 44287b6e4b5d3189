# database.py
"""
SQLAlchemy database connection and session management.

This module provides:
- Database engine configuration from DATABASE_URL (SQLite by default, any
  SQLAlchemy URL such as postgresql+psycopg2://... in production)
- Session factory shared by the invoice store and the dedup ledger
- Table creation for development (init_db)

Usage:
     from database import get_session_context

     with get_session_context() as db:
          pending = db.query(Invoice).filter(Invoice.status == InvoiceStatus.PENDING).all()
"""
import logging
import os
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

logger = logging.getLogger("gateway.database")

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./gateway.db")


def build_engine(url: str = DATABASE_URL, **kwargs) -> Engine:
     """
     Create an engine for `url`.

     SQLite needs check_same_thread=False because the reconciliation loop runs
     its cycles in a worker thread while the API uses the request threads.
     """
     options = {
          "echo": os.getenv("SQL_ECHO", "false").lower() == "true",  # Log SQL if SQL_ECHO=true
          "pool_pre_ping": True,
     }
     if url.startswith("sqlite"):
          options["connect_args"] = {"check_same_thread": False}
     else:
          options.update(pool_size=5, max_overflow=10, pool_timeout=30, pool_recycle=1800)
     options.update(kwargs)
     return create_engine(url, **options)


def build_session_factory(bind: Engine) -> sessionmaker:
     return sessionmaker(
          bind=bind,
          autocommit=False,
          autoflush=False,
          expire_on_commit=False,
     )


# Create SQLAlchemy engine
engine = build_engine()

# Session factory
SessionLocal = build_session_factory(engine)


@contextmanager
def get_session_context(factory: sessionmaker = SessionLocal) -> Generator[Session, None, None]:
     """
     Context manager for database sessions.

     Commits on success, rolls back and re-raises on any error.

     Yields:
          Session: SQLAlchemy database session
     """
     session = factory()
     try:
          yield session
          session.commit()
     except Exception:
          session.rollback()
          raise
     finally:
          session.close()


def init_db(bind: Engine = engine) -> None:
     """
     Initialize database tables.

     Creates all tables defined in the models if they don't exist.
     For production, use Alembic migrations instead.
     """
     from models import Base
     Base.metadata.create_all(bind=bind)
     logger.debug(f"Tables ensured on {bind.url.render_as_string(hide_password=True)}")
