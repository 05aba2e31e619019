"""Database configuration and session management."""

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

from billsplit.core.config import settings

# Only connected to when STORAGE_BACKEND is "sql"
engine = create_engine(
    settings.DATABASE_URL,
    connect_args=(
        {"check_same_thread": False}  # Needed for SQLite
        if settings.DATABASE_URL.startswith("sqlite")
        else {}
    ),
)

# Create SessionLocal class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Base class for models
class Base(DeclarativeBase):
    """Base class for all database models."""

    pass
