"""
Seed a handful of demo items into the SQLite database.

This script can be run from either:
- backend/: `python scripts/seed_demo_data.py`
- repo root: `python backend/scripts/seed_demo_data.py`

Items that already exist are left untouched. Pass `--checkout` to also check
out the first demo item as "demo-user".
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Allow running from repo root by ensuring `backend/` is on sys.path
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from core.checkinout import CheckInOutEngine  # noqa: E402
from core.config import settings  # noqa: E402
from db.database import build_engine, build_session_maker, create_db_and_tables  # noqa: E402
from db.repository import InventoryRepository  # noqa: E402

DEMO_ITEMS = [
    {"item_id": "LAPTOP-001", "item_name": "Dell Latitude 7440", "serial_number": "DL7440-A1"},
    {"item_id": "LAPTOP-002", "item_name": "MacBook Pro 14", "serial_number": "C02XK0AAJGH5"},
    {"item_id": "CAM-001", "item_name": "Canon EOS R6", "serial_number": "CR6-99812"},
    {"item_id": "PROJ-001", "item_name": "Epson EB-X51 Projector", "serial_number": None},
    {"item_id": "DRILL-001", "item_name": "Makita Cordless Drill", "serial_number": "MK-DHP482"},
]


async def seed(database_url: str, checkout: bool = False) -> None:
    engine = build_engine(database_url)
    await create_db_and_tables(engine)
    session_maker = build_session_maker(engine)
    try:
        async with session_maker() as session:
            repo = InventoryRepository(session)
            for data in DEMO_ITEMS:
                if await repo.find_by_key(data["item_id"]):
                    print(f"Skipping {data['item_id']}: already exists")
                    continue
                await repo.create_item(**data)
                print(f"Created {data['item_id']}")

            if checkout:
                first = DEMO_ITEMS[0]
                result = await CheckInOutEngine(repo).process(
                    first["item_id"], first["serial_number"], "checkout", "demo-user"
                )
                print(result.message)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed demo inventory items")
    parser.add_argument("--database-url", default=settings.database_url)
    parser.add_argument("--checkout", action="store_true", help="check out the first demo item")
    args = parser.parse_args()
    asyncio.run(seed(args.database_url, checkout=args.checkout))
