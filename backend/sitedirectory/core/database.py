from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base
import logging

logger = logging.getLogger(__name__)

# Base class for models - can be imported without connecting to DB
Base = declarative_base()

# Engine and SessionLocal are lazily created
_engine = None
_SessionLocal = None


def get_engine():
    """
    Lazy engine creation - only connects when first used.
    This prevents import-time failures if database is unreachable.
    """
    global _engine
    if _engine is None:
        from sitedirectory.core.config import settings
        if not settings.DATABASE_URL:
            raise RuntimeError("DATABASE_URL is not configured")
        logger.info(f"Creating database engine for: {settings.DATABASE_URL[:50]}...")
        if settings.DATABASE_URL.startswith("sqlite"):
            _engine = create_engine(
                settings.DATABASE_URL,
                connect_args={"check_same_thread": False},
            )
        else:
            _engine = create_engine(
                settings.DATABASE_URL,
                pool_pre_ping=True,
                pool_size=5,
                max_overflow=10,
                # Connection timeout to avoid hanging forever
                connect_args={"connect_timeout": 10}
            )
    return _engine


def get_session_local():
    """Get or create SessionLocal factory."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())
    return _SessionLocal


def init_db():
    """Create all tables (in production, use migrations)."""
    # Register models on Base.metadata
    from sitedirectory import models  # noqa: F401
    Base.metadata.create_all(bind=get_engine())


