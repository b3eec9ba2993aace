from typing import Any, Optional

from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from subtrack.db.base import Base


class KeyValueEntry(Base):
    """One JSON document stored under a unique key."""

    # Base provides: id, created_at, updated_at
    key: Mapped[str] = mapped_column(String, unique=True, index=True, nullable=False)
    data: Mapped[Optional[Any]] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:  # pragma: no cover - debug helper
        return f"<KeyValueEntry(key={self.key!r})>"
