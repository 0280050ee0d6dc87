"""
Engine and session setup for the senior registry.

`DATABASE_BACKEND` picks the store: "postgres" requires PostgreSQL (pg8000),
"sqlite" pins the local file under the data directory, and "auto" tries
PostgreSQL once and settles on SQLite if the connection test fails.
"""

import os
import logging
from typing import Optional, Any, Dict, Iterator
from sqlalchemy import create_engine, Engine, text
from sqlalchemy.orm import sessionmaker, Session
from dotenv import load_dotenv

load_dotenv()

from .models import Base

logger = logging.getLogger(__name__)

REPO_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "../../../"))
DATA_DIR = os.getenv("SENIORS_DATA_DIR", os.path.join(REPO_DIR, "data"))
UPLOADS_DIR = os.path.join(DATA_DIR, "uploads")
DEFAULT_SQLITE_DB = os.path.join(DATA_DIR, "seniors.db")

DATABASE_BACKEND = os.getenv("DATABASE_BACKEND", "auto").lower()
BACKEND_CHOICES = ("auto", "postgres", "sqlite")

os.makedirs(DATA_DIR, exist_ok=True)

# Lazily built; reset by close_databases()
_engines: Dict[str, Engine] = {}
_session_maker: Optional[sessionmaker] = None
_current_db_type: str = "unknown"


def _echo_sql() -> bool:
    return os.getenv("DATABASE_DEBUG", "").lower() == "true"


def _postgres_url() -> str:
    url = os.getenv("POSTGRES_URL")
    if url:
        return url
    return "postgresql+pg8000://{user}:{password}@{host}:{port}/{db}".format(
        user=os.getenv("POSTGRES_USER", "postgres"),
        password=os.getenv("POSTGRES_PASSWORD", "password"),
        host=os.getenv("POSTGRES_HOST", "localhost"),
        port=os.getenv("POSTGRES_PORT", "5432"),
        db=os.getenv("POSTGRES_DB", "senior_benefits"),
    )


def get_postgres_engine() -> Optional[Engine]:
    """PostgreSQL engine, or None when it is disabled or unreachable in auto mode."""
    if "postgresql" in _engines:
        return _engines["postgresql"]
    if DATABASE_BACKEND == "sqlite":
        return None
    if DATABASE_BACKEND not in BACKEND_CHOICES:
        logger.warning(f"Unknown DATABASE_BACKEND {DATABASE_BACKEND!r}, treating as auto")

    engine = create_engine(
        _postgres_url(),
        echo=_echo_sql(),
        pool_size=10,
        max_overflow=20,
        pool_timeout=30,
        pool_recycle=1800,
    )
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as e:
        engine.dispose()
        if DATABASE_BACKEND == "postgres":
            raise
        logger.warning(f"PostgreSQL unavailable, using SQLite instead: {e}")
        return None

    logger.info("PostgreSQL connection established")
    _engines["postgresql"] = engine
    return engine


def get_sqlite_engine() -> Engine:
    if "sqlite" not in _engines:
        path = os.getenv("SQLITE_PATH", DEFAULT_SQLITE_DB)
        _engines["sqlite"] = create_engine(
            f"sqlite:///{path}",
            connect_args={"check_same_thread": False},
            echo=_echo_sql(),
        )
        logger.info(f"SQLite database at {path}")
    return _engines["sqlite"]


def get_current_engine() -> Engine:
    global _current_db_type

    engine = get_postgres_engine()
    if engine is None:
        engine = get_sqlite_engine()
        _current_db_type = "sqlite"
    else:
        _current_db_type = "postgresql"
    return engine


def get_current_session() -> sessionmaker:
    """Session factory bound to the selected engine. Tables are created on first use."""
    global _session_maker

    if _session_maker is None:
        engine = get_current_engine()
        Base.metadata.create_all(bind=engine)
        _session_maker = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)
    return _session_maker


def get_database_info() -> Dict[str, Any]:
    return {
        "primary_db": _current_db_type,
        "backend_setting": DATABASE_BACKEND,
        "postgres_available": "postgresql" in _engines,
        "sqlite_available": True,
        "data_dir": DATA_DIR,
        "uploads_dir": UPLOADS_DIR,
    }


def init_databases():
    """Create missing tables and the uploads directory."""
    engine = get_current_engine()
    Base.metadata.create_all(bind=engine)
    os.makedirs(UPLOADS_DIR, exist_ok=True)
    logger.info(f"Database ready: {get_database_info()}")


def reset_database():
    """Drop and recreate every table. Development and test use only."""
    engine = get_current_engine()
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    logger.warning(f"Database reset: {_current_db_type}")


def close_databases():
    global _session_maker

    for name, engine in list(_engines.items()):
        engine.dispose()
        del _engines[name]
    _session_maker = None
    logger.info("Database engines disposed")


class DatabaseSession:
    """`with DatabaseSession() as db:` commits on success and rolls back on error."""

    def __init__(self):
        self.session: Optional[Session] = None

    def __enter__(self) -> Session:
        self.session = get_current_session()()
        return self.session

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.session is None:
            return
        try:
            if exc_type:
                self.session.rollback()
            else:
                self.session.commit()
        finally:
            self.session.close()


def get_db() -> Iterator[Session]:
    """FastAPI dependency yielding one session per request. Services commit explicitly."""
    session = get_current_session()()
    try:
        yield session
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
