import csv
import io
from typing import Iterable

from db.item import InventoryItem

CSV_HEADERS = [
    "Item ID",
    "Item Name",
    "Serial Number",
    "Status",
    "Created At",
    "Updated At",
    "Checked Out By",
    "Checked Out At",
]


def _cell(value) -> str:
    if value is None:
        return ""
    if hasattr(value, "isoformat"):
        return value.isoformat(sep=" ", timespec="seconds")
    return str(value)


def item_to_csv_row(item: InventoryItem) -> list:
    """Convert SQLAlchemy model to one CSV row"""
    return [
        _cell(item.item_id),
        _cell(item.item_name),
        _cell(item.serial_number),
        _cell(item.status),
        _cell(item.created_at),
        _cell(item.updated_at),
        _cell(item.checked_out_by),
        _cell(item.checked_out_at),
    ]


def items_to_csv(items: Iterable[InventoryItem]) -> str:
    """Render items as CSV with every value quoted"""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)
    for item in items:
        writer.writerow(item_to_csv_row(item))
    return buf.getvalue()
