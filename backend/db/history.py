from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text

from .database import Base, utcnow

ACTION_CREATED = "created"
ACTION_CHECKIN = "checkin"
ACTION_CHECKOUT = "checkout"


class HistoryEntry(Base):
    """Append-only log of actions against one item.

    Rows are never updated; they only disappear when the item is deleted.
    """
    __tablename__ = "inventory_history"
    __table_args__ = (
        CheckConstraint("action IN ('checkin', 'checkout', 'created')", name="ck_inventory_history_action"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    item_id = Column(
        String(50),
        ForeignKey("inventory_items.item_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    action = Column(String(20), nullable=False)
    user_id = Column(String(50), nullable=True)
    serial_number = Column(String(100), nullable=True)
    timestamp = Column(DateTime, nullable=False, default=utcnow, index=True)
    notes = Column(Text, nullable=True)

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "itemId": self.item_id,
            "action": self.action,
            "userId": self.user_id,
            "serialNumber": self.serial_number,
            "timestamp": self.timestamp,
            "notes": self.notes,
        }
