"""Database migration utilities"""
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

# Columns added after the first release: name -> SQLite column DDL
LATE_ITEM_COLUMNS = {
    "photo_filename": "TEXT",
    "last_action_by": "VARCHAR(50)",
}


async def add_missing_item_columns(engine: AsyncEngine) -> list[str]:
    """Add columns missing from inventory_items on databases created by older builds.

    Returns the names of the columns that were added.
    """
    added = []
    async with engine.begin() as conn:
        result = await conn.execute(text("PRAGMA table_info('inventory_items')"))
        existing_columns = {row[1] for row in result.fetchall()}
        if not existing_columns:
            logger.info("inventory_items table does not exist yet, nothing to migrate")
            return added

        for column_name, column_type in LATE_ITEM_COLUMNS.items():
            if column_name in existing_columns:
                logger.debug("%s column already exists in inventory_items table", column_name)
                continue
            logger.info("Adding %s column to inventory_items table...", column_name)
            await conn.execute(text(f"ALTER TABLE inventory_items ADD COLUMN {column_name} {column_type}"))
            added.append(column_name)
    return added
