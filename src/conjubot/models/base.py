"""Base model configuration."""
from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from conjubot.config import settings

IN_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")

engine_options = {"echo": settings.database.echo}
if settings.database.url in IN_MEMORY_URLS:
    # A single shared connection keeps the in-memory database alive
    engine_options.update(connect_args={"check_same_thread": False}, poolclass=StaticPool)

# Create SQLAlchemy engine
engine = create_engine(settings.database.url, **engine_options)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Create declarative base class
Base = declarative_base()


class TimestampMixin:
    """Mixin to add timestamp columns to models."""
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
    )


def init_db() -> None:
    """Initialize database."""
    # Import models so their tables are registered on Base
    from conjubot.models import models  # noqa: F401

    Base.metadata.create_all(bind=engine)  # Create tables if they don't exist
