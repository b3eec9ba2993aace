from contextlib import contextmanager
from typing import Any, Dict, Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from subtrack.core.config import settings


def get_connect_args(database_url: str) -> Dict[str, Any]:
    """Get database-specific connection arguments"""
    if database_url.startswith("sqlite"):
        # SQLite needs check_same_thread=False for FastAPI
        return {"check_same_thread": False}
    return {}


def build_engine(database_url: str) -> Engine:
    return create_engine(database_url, connect_args=get_connect_args(database_url))


settings.ensure_data_directory()
engine = build_engine(settings.database_url)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db_sync(factory: sessionmaker = SessionLocal) -> Generator[Session, None, None]:
    """Get a DB session with proper resource management"""
    db = factory()
    try:
        yield db
    finally:
        db.close()
