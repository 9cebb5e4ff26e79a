"""
Persistence collaborator for inventory items, their history log and receipts.

The repository never commits on its own except in the CRUD helpers that
represent a full unit of work (create/update/delete). The check-in/check-out
engine drives commit/rollback itself so the status change and its history
entry land in one transaction.
"""

from typing import Dict, List, Optional

from sqlalchemy import case, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .database import utcnow
from .history import ACTION_CREATED, HistoryEntry
from .item import STATUS_AVAILABLE, STATUS_CHECKED_OUT, InventoryItem
from .receipt import Receipt


def _escape_like(term: str) -> str:
    # search terms match literally, so LIKE wildcards are escaped
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _receipt_rows(item_id: str, files: List[Dict]) -> List[Receipt]:
    return [
        Receipt(
            item_id=item_id,
            filename=f["filename"],
            original_name=f["original_name"],
            mime_type=f["mime_type"],
            size_bytes=f["size_bytes"],
        )
        for f in files
    ]


class InventoryRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    # ----------------------------
    # Lookups
    # ----------------------------

    async def find_by_key(self, item_id: str) -> Optional[InventoryItem]:
        """Point lookup by item key, always refreshed from the database."""
        result = await self.session.execute(
            select(InventoryItem)
            .where(InventoryItem.item_id == item_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_items(
        self,
        search: Optional[str] = None,
        status: Optional[str] = None,
        page: Optional[int] = None,
        limit: Optional[int] = None,
    ) -> List[InventoryItem]:
        stmt = select(InventoryItem)
        if search:
            pattern = f"%{_escape_like(search)}%"
            stmt = stmt.where(
                or_(
                    InventoryItem.item_id.like(pattern, escape="\\"),
                    InventoryItem.item_name.like(pattern, escape="\\"),
                    InventoryItem.serial_number.like(pattern, escape="\\"),
                )
            )
        if status:
            stmt = stmt.where(InventoryItem.status == status)
        stmt = stmt.order_by(InventoryItem.updated_at.desc(), InventoryItem.id.desc())
        if limit:
            stmt = stmt.limit(limit).offset(((page or 1) - 1) * limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_stats(self) -> Dict[str, int]:
        result = await self.session.execute(
            select(
                func.count(InventoryItem.id),
                func.sum(case((InventoryItem.status == STATUS_AVAILABLE, 1), else_=0)),
                func.sum(case((InventoryItem.status == STATUS_CHECKED_OUT, 1), else_=0)),
            )
        )
        total, available, checked_out = result.one()
        return {
            "totalItems": int(total or 0),
            "availableItems": int(available or 0),
            "checkedOutItems": int(checked_out or 0),
        }

    async def get_history(self, item_id: str) -> List[HistoryEntry]:
        result = await self.session.execute(
            select(HistoryEntry)
            .where(HistoryEntry.item_id == item_id)
            .order_by(HistoryEntry.timestamp.desc(), HistoryEntry.id.desc())
        )
        return list(result.scalars().all())

    # ----------------------------
    # State-engine primitives
    # ----------------------------

    async def conditional_update(self, item_id: str, expected_status: str, values: Dict) -> int:
        """Single UPDATE guarded by key and prior status; returns rows affected."""
        values = dict(values)
        values.setdefault("updated_at", utcnow())
        result = await self.session.execute(
            update(InventoryItem)
            .where(InventoryItem.item_id == item_id, InventoryItem.status == expected_status)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        return int(result.rowcount or 0)

    async def append_history(
        self,
        item_id: str,
        action: str,
        user_id: Optional[str] = None,
        serial_number: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> HistoryEntry:
        entry = HistoryEntry(
            item_id=item_id,
            action=action,
            user_id=user_id or None,
            serial_number=serial_number or None,
            notes=notes or None,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def commit(self) -> None:
        await self.session.commit()

    async def rollback(self) -> None:
        await self.session.rollback()

    # ----------------------------
    # CRUD
    # ----------------------------

    async def create_item(
        self,
        item_id: str,
        item_name: str,
        serial_number: Optional[str] = None,
        photo_filename: Optional[str] = None,
        receipts: Optional[List[Dict]] = None,
    ) -> InventoryItem:
        """Insert an Available item, its `created` history entry and any receipt rows in one commit."""
        item = InventoryItem(
            item_id=item_id,
            item_name=item_name,
            serial_number=serial_number or None,
            photo_filename=photo_filename,
            status=STATUS_AVAILABLE,
        )
        self.session.add(item)
        await self.session.flush()
        await self.append_history(item_id, ACTION_CREATED, serial_number=serial_number)
        self.session.add_all(_receipt_rows(item_id, receipts or []))
        await self.commit()
        await self.session.refresh(item)
        return item

    async def update_item_fields(self, item_id: str, fields: Dict) -> int:
        """Edit descriptive fields only; status and checkout fields are off limits."""
        allowed = {k: v for k, v in fields.items() if k in ("item_name", "serial_number", "photo_filename")}
        if not allowed:
            return 0
        allowed["updated_at"] = utcnow()
        result = await self.session.execute(
            update(InventoryItem)
            .where(InventoryItem.item_id == item_id)
            .values(**allowed)
            .execution_options(synchronize_session=False)
        )
        await self.session.commit()
        return int(result.rowcount or 0)

    async def delete_item(self, item_id: str) -> bool:
        # Children first (FK)
        await self.session.execute(delete(Receipt).where(Receipt.item_id == item_id))
        await self.session.execute(delete(HistoryEntry).where(HistoryEntry.item_id == item_id))
        res = await self.session.execute(delete(InventoryItem).where(InventoryItem.item_id == item_id))
        await self.session.commit()
        return int(res.rowcount or 0) > 0

    # ----------------------------
    # Receipts
    # ----------------------------

    async def get_receipts(self, item_id: str) -> List[Receipt]:
        result = await self.session.execute(
            select(Receipt)
            .where(Receipt.item_id == item_id)
            .order_by(Receipt.uploaded_at.desc(), Receipt.id.desc())
        )
        return list(result.scalars().all())

    async def get_receipt(self, receipt_id: int) -> Optional[Receipt]:
        result = await self.session.execute(select(Receipt).where(Receipt.id == receipt_id))
        return result.scalar_one_or_none()
