"""Key-value storage of JSON documents on SQLAlchemy.

The data API keeps the whole dataset as one document under a fixed key, so the
store only needs atomic get and full-replace put.
"""
from __future__ import annotations

import logging
from threading import Lock
from typing import Any, Optional, Protocol

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from subtrack.core.errors import StoreUnavailableError
from subtrack.db.base import Base
from subtrack.db.models.kv_entry import KeyValueEntry
from subtrack.db.session import SessionLocal, get_db_sync

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    """Capability interface for the document store."""

    def get(self, key: str) -> Optional[Any]:
        ...

    def put(self, key: str, value: Any) -> None:
        ...


class SQLKeyValueStore:
    """KeyValueStore backed by the ``keyvalueentry`` table."""

    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self._session_factory = session_factory
        self._table_ready = False
        self._table_lock = Lock()

    def _ensure_table(self) -> None:
        """Ensure the keyvalueentry table exists in a thread-safe manner."""
        if self._table_ready:
            return

        with self._table_lock:
            if self._table_ready:
                return
            try:
                Base.metadata.create_all(
                    bind=self._session_factory.kw["bind"],
                    tables=[KeyValueEntry.__table__],
                    checkfirst=True,
                )
            except SQLAlchemyError as e:
                logger.error(f"Failed to initialize key-value table: {e}")
                raise StoreUnavailableError() from e
            self._table_ready = True
            logger.debug("Key-value table initialized successfully")

    def get(self, key: str) -> Optional[Any]:
        """Return the document stored under ``key``, or None if absent."""
        self._ensure_table()
        try:
            with get_db_sync(self._session_factory) as db:
                row = db.scalar(select(KeyValueEntry).where(KeyValueEntry.key == key))
                return row.data if row else None
        except SQLAlchemyError as e:
            logger.error(f"Read failed for key {key}: {e}")
            raise StoreUnavailableError() from e

    def put(self, key: str, value: Any) -> None:
        """
        Replace the document stored under ``key``.

        Raises:
            StoreUnavailableError: If the write could not be committed
        """
        self._ensure_table()
        with get_db_sync(self._session_factory) as db:
            try:
                result = db.execute(
                    update(KeyValueEntry)
                    .where(KeyValueEntry.key == key)
                    .values(data=value)
                )
                if result.rowcount == 0:
                    db.add(KeyValueEntry(key=key, data=value))
                db.commit()
            except IntegrityError:
                # Another writer inserted the key between our UPDATE and INSERT
                db.rollback()
                logger.debug(f"Insert raced for key {key}, retrying update")
                try:
                    db.execute(
                        update(KeyValueEntry)
                        .where(KeyValueEntry.key == key)
                        .values(data=value)
                    )
                    db.commit()
                except SQLAlchemyError as e:
                    db.rollback()
                    logger.error(f"Write retry failed for key {key}: {e}")
                    raise StoreUnavailableError() from e
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Write failed for key {key}: {e}")
                raise StoreUnavailableError() from e


_default_store: Optional[SQLKeyValueStore] = None


def get_store() -> KeyValueStore:
    """Dependency returning the process-wide store."""
    global _default_store
    if _default_store is None:
        _default_store = SQLKeyValueStore()
    return _default_store
