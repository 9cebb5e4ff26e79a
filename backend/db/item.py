from sqlalchemy import CheckConstraint, Column, DateTime, Integer, String, Text

from .database import Base, utcnow

STATUS_AVAILABLE = "Available"
STATUS_CHECKED_OUT = "Checked Out"
ITEM_STATUSES = (STATUS_AVAILABLE, STATUS_CHECKED_OUT)


class InventoryItem(Base):
    """Inventory item identified by a caller-assigned key (item_id)."""
    __tablename__ = "inventory_items"
    __table_args__ = (
        CheckConstraint(
            "status IN (" + ", ".join(f"'{s}'" for s in ITEM_STATUSES) + ")",
            name="ck_inventory_items_status",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    item_id = Column(String(50), nullable=False, unique=True, index=True)
    item_name = Column(String(200), nullable=False)
    serial_number = Column(String(100), nullable=True)
    photo_filename = Column(Text, nullable=True)

    status = Column(String(20), nullable=False, default=STATUS_AVAILABLE, index=True)

    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow, index=True)

    # Only set while checked out
    checked_out_by = Column(String(50), nullable=True)
    checked_out_at = Column(DateTime, nullable=True)
    last_action_by = Column(String(50), nullable=True)

    @property
    def photo_url(self):
        if not self.photo_filename:
            return None
        return f"/api/photos/{self.photo_filename}"

    @property
    def to_schema(self):
        """Convert InventoryItem model to the camelCase API shape"""
        return {
            "id": self.id,
            "itemId": self.item_id,
            "itemName": self.item_name,
            "serialNumber": self.serial_number,
            "photoFilename": self.photo_filename,
            "photoUrl": self.photo_url,
            "status": self.status,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
            "checkedOutBy": self.checked_out_by,
            "checkedOutAt": self.checked_out_at,
            "lastActionBy": self.last_action_by,
        }
