from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text

from .database import Base, utcnow


class Receipt(Base):
    """Metadata of an uploaded PDF receipt; the file itself lives on disk."""
    __tablename__ = "inventory_receipts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    item_id = Column(
        String(50),
        ForeignKey("inventory_items.item_id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    filename = Column(Text, nullable=False)
    original_name = Column(Text, nullable=False)
    mime_type = Column(String(100), nullable=False)
    size_bytes = Column(Integer, nullable=False)
    uploaded_at = Column(DateTime, nullable=False, default=utcnow)

    @property
    def to_schema(self):
        return {
            "id": self.id,
            "itemId": self.item_id,
            "filename": self.filename,
            "originalName": self.original_name,
            "mimeType": self.mime_type,
            "sizeBytes": self.size_bytes,
            "uploadedAt": self.uploaded_at,
            "downloadUrl": f"/api/receipts/{self.id}/download",
        }
