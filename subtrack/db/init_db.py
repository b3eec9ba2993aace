#!/usr/bin/env python3
"""Initialize the database with proper schema"""

import logging

from subtrack.db.base import Base
from subtrack.db.session import engine

logger = logging.getLogger("subtrack.database")

# Import all models explicitly to register them with SQLAlchemy
from subtrack.db.models import kv_entry as _model_kv_entry  # noqa: F401


def init_database() -> list:
    """Create all tables and return their names"""
    try:
        logger.info("Creating database tables...")
        Base.metadata.create_all(bind=engine)

        table_names = [table.name for table in Base.metadata.sorted_tables]
        logger.info("Created database tables", extra={
            "table_count": len(table_names),
            "tables": table_names
        })
        return table_names

    except Exception as e:
        logger.error(f"Error initializing database: {e}", extra={
            "error_type": type(e).__name__,
            "database_url": "[REDACTED]"  # Don't log connection strings
        })
        logger.error("Please check database connection settings and permissions.")
        raise


if __name__ == "__main__":
    init_database()
