"""Database models"""

from subtrack.db.models.kv_entry import KeyValueEntry

__all__ = ["KeyValueEntry"]
