#!/usr/bin/env python3
"""Create (or recreate with --drop) the database schema from the SQLAlchemy models."""

import asyncio
import sys

from sqlalchemy import inspect

from brainwash.database.connection import db_manager


async def create_tables(drop: bool = False):
    """Create all tables, dropping them first when asked."""
    print(f"{'Recreating' if drop else 'Creating'} database tables at {db_manager.url}...")

    try:
        await db_manager.create_tables(drop=drop)
        print("Database tables created successfully!")

        async with db_manager.get_session() as session:
            conn = await session.connection()
            tables = await conn.run_sync(lambda sync_conn: inspect(sync_conn).get_table_names())
            print(f"Tables: {tables}")

        return True

    except Exception as e:
        print(f"Failed to create tables: {e}")
        import traceback

        traceback.print_exc()
        return False
    finally:
        await db_manager.close()


if __name__ == "__main__":
    success = asyncio.run(create_tables(drop="--drop" in sys.argv[1:]))
    sys.exit(0 if success else 1)
