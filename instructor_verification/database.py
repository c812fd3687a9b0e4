"""
Database connection and session management
Supports PostgreSQL in production and SQLite for local runs
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from typing import Generator
from instructor_verification.config import settings

# Pool sizing only applies to server databases
engine_options = {"pool_pre_ping": True}
if settings.DATABASE_URL.startswith("postgresql"):
    engine_options.update(
        pool_size=10,
        max_overflow=20,
        connect_args={
            "connect_timeout": 10,
            "options": "-c timezone=utc"
        }
    )
elif settings.DATABASE_URL.startswith("sqlite"):
    engine_options["connect_args"] = {"check_same_thread": False}

engine = create_engine(settings.DATABASE_URL, **engine_options)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for models
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    """
    Dependency function to get database session
    Usage in FastAPI endpoints: db: Session = Depends(get_db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    """Initialize database - create all tables"""
    # Import all models here to ensure they're registered
    from instructor_verification.models import (  # noqa: F401
        user, application, review, instructor_profile, notification
    )
    Base.metadata.create_all(bind=engine)
