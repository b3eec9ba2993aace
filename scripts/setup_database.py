#!/usr/bin/env python3
"""
Database setup script for SubTrack.

Creates the key-value table backing the synchronized dataset.
"""

import sys

from subtrack.db.init_db import init_database


def main() -> bool:
    """Initialize the key-value store tables"""
    print("SubTrack Database Setup")
    print("=" * 40)

    try:
        tables = init_database()
    except Exception as e:
        print(f"Database initialization failed: {e}")
        return False

    print("Database initialized successfully!")
    for table in sorted(tables):
        print(f"  - {table}")
    return True


if __name__ == "__main__":
    sys.exit(0 if main() else 1)
