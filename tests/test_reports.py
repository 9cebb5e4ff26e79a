import csv
import io
from datetime import datetime

from core.converters import CSV_HEADERS, items_to_csv
from db.item import InventoryItem


def test_stats_endpoint(client, create_item):
    assert client.get("/api/stats").json()["data"] == {
        "totalItems": 0,
        "availableItems": 0,
        "checkedOutItems": 0,
    }
    create_item("S-1")
    create_item("S-2")
    client.post("/api/checkin-checkout", json={"itemId": "S-1", "serialNumber": "SN", "action": "checkout"})

    resp = client.get("/api/stats")
    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "data": {"totalItems": 2, "availableItems": 1, "checkedOutItems": 1},
    }


def test_export_csv(client, create_item):
    create_item("E-1", "Laptop, 14 inch", "SN-1")
    create_item("E-2", 'Camera "Pro"')
    client.post(
        "/api/checkin-checkout",
        json={"itemId": "E-1", "serialNumber": "SN-1", "action": "checkout", "userId": "alice"},
    )

    resp = client.get("/api/export/csv")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/csv")
    assert resp.headers["content-disposition"] == "attachment; filename=inventory-export.csv"

    rows = list(csv.reader(io.StringIO(resp.text)))
    assert rows[0] == CSV_HEADERS
    by_id = {r[0]: r for r in rows[1:]}
    assert by_id["E-1"][1] == "Laptop, 14 inch"
    assert by_id["E-1"][3] == "Checked Out"
    assert by_id["E-1"][6] == "alice"
    assert by_id["E-1"][7] != ""
    assert by_id["E-2"][1] == 'Camera "Pro"'
    assert by_id["E-2"][2] == ""
    assert by_id["E-2"][6:] == ["", ""]


def test_items_to_csv_quotes_every_value():
    item = InventoryItem(
        item_id="Q-1",
        item_name="Tripod",
        serial_number=None,
        status="Available",
        created_at=datetime(2024, 5, 1, 9, 30, 0),
        updated_at=datetime(2024, 5, 2, 10, 0, 0),
    )
    lines = items_to_csv([item]).splitlines()
    assert lines[1] == '"Q-1","Tripod","","Available","2024-05-01 09:30:00","2024-05-02 10:00:00","",""'
