"""
Database configuration and session management
Configured for MySQL (can fallback to SQLite for development)
"""

import logging
from pathlib import Path
from urllib.parse import quote_plus, urlparse

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from telehealth_scheduler import config

logger = logging.getLogger(__name__)


def build_database_url() -> str:
    """
    Resolve the database URL

    DATABASE_URL wins; otherwise a MySQL URL is built from the DB_* settings,
    and SQLite is used when no MySQL password is configured.
    """
    if config.DATABASE_URL:
        return config.DATABASE_URL

    if config.DB_PASSWORD:
        # URL encode password to handle special characters
        encoded_password = quote_plus(config.DB_PASSWORD)
        return (
            f"mysql+pymysql://{config.DB_USER}:{encoded_password}"
            f"@{config.DB_HOST}:{config.DB_PORT}/{config.DB_NAME}?charset=utf8mb4"
        )

    logger.warning("No MySQL password found, using SQLite for development")
    return config.SQLITE_FALLBACK_URL


def _mysql_reachable(url: str) -> bool:
    try:
        test_engine = create_engine(url, pool_pre_ping=True, connect_args={"connect_timeout": 2})
        with test_engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        test_engine.dispose()
        return True
    except Exception as e:
        logger.warning("MySQL connection failed: %s", e)
        return False


def create_db_engine(url: str) -> Engine:
    """Create engine with the pool settings appropriate for the backend"""
    if url.startswith("sqlite"):
        if url.startswith("sqlite:///./"):
            # Ensure data directory exists for the file database
            Path(url[len("sqlite:///"):]).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(
            url,
            connect_args={"check_same_thread": False},
            echo=config.DEBUG,
            pool_pre_ping=True,
        )

    parsed = urlparse(url)
    logger.info(
        "Using database %s@%s:%s",
        parsed.path.lstrip("/").split("?")[0] or "unknown",
        parsed.hostname or "localhost",
        parsed.port or 3306,
    )
    return create_engine(
        url,
        pool_size=10,  # Number of connections to maintain
        max_overflow=20,  # Additional connections if pool is exhausted
        pool_pre_ping=True,  # Verify connections before using
        pool_recycle=3600,  # Recycle connections after 1 hour
        echo=config.DEBUG,
    )


DATABASE_URL = build_database_url()
if DATABASE_URL.startswith("mysql") and not _mysql_reachable(DATABASE_URL):
    logger.warning("Falling back to SQLite for demo mode")
    DATABASE_URL = config.SQLITE_FALLBACK_URL

engine = create_db_engine(DATABASE_URL)

# Objects handed out by the stores outlive their session
SessionLocal = sessionmaker(autoflush=False, expire_on_commit=False, bind=engine)

# Base class for models
Base = declarative_base()


def init_db(bind: Engine = None) -> bool:
    """
    Initialize database - create all tables
    Returns True if successful, False if failed (app can continue in demo mode)
    """
    bind = bind or engine
    try:
        # Import all models here so they're registered with Base
        from telehealth_scheduler.models import appointment, availability, provider  # noqa: F401

        Base.metadata.create_all(bind=bind)

        tables = inspect(bind).get_table_names()
        logger.info("Database initialized - tables: %s", ", ".join(sorted(tables)))
        return True
    except Exception:
        logger.exception("Database initialization failed, continuing in demo mode")
        return False
