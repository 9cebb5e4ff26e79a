from typing import get_args

import pytest
from sqlalchemy.exc import IntegrityError

from db.item import ITEM_STATUSES
from schemas.items import ItemStatus


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["environment"]


def test_create_and_get_item(client):
    resp = client.post("/api/items", json={"itemId": "LAP-1", "itemName": "  Laptop  ", "serialNumber": " SN-1 "})
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == 'Item "LAP-1" created successfully'
    item = body["data"]
    assert item["itemId"] == "LAP-1"
    assert item["itemName"] == "Laptop"
    assert item["serialNumber"] == "SN-1"
    assert item["status"] == "Available"
    assert item["checkedOutBy"] is None
    assert item["photoUrl"] is None

    resp = client.get("/api/items/LAP-1")
    assert resp.status_code == 200
    assert resp.json()["data"]["itemName"] == "Laptop"


def test_create_writes_created_history(client, create_item):
    create_item("LAP-2", serial_number="SN-2")
    history = client.get("/api/items/LAP-2/history").json()["data"]["history"]
    assert len(history) == 1
    assert history[0]["action"] == "created"
    assert history[0]["serialNumber"] == "SN-2"
    assert history[0]["userId"] is None


def test_create_duplicate_is_rejected(client, create_item):
    create_item("DUP-1")
    resp = client.post("/api/items", json={"itemId": "DUP-1", "itemName": "Other"})
    assert resp.status_code == 409
    assert "already exists" in resp.json()["detail"]
    assert client.get("/api/items/DUP-1").json()["data"]["itemName"] == "Laptop"


def test_create_validation(client):
    assert client.post("/api/items", json={"itemId": "bad id!", "itemName": "X"}).status_code == 422
    assert client.post("/api/items", json={"itemId": "OK-1", "itemName": "   "}).status_code == 422
    assert client.post("/api/items", json={"itemName": "X"}).status_code == 422
    assert client.post("/api/items", json={"itemId": "A" * 51, "itemName": "X"}).status_code == 422
    assert client.post("/api/items", content=b"not json", headers={"content-type": "application/json"}).status_code == 400


def test_get_missing_item(client):
    resp = client.get("/api/items/NOPE")
    assert resp.status_code == 404
    assert resp.json()["detail"] == 'Item with ID "NOPE" not found'


def test_update_only_touches_descriptive_fields(client, create_item):
    create_item("UPD-1", serial_number="SN-1")
    client.post("/api/checkin-checkout", json={"itemId": "UPD-1", "serialNumber": "SN-1", "action": "checkout", "userId": "alice"})

    resp = client.put(
        "/api/items/UPD-1",
        json={"itemName": "Renamed", "serialNumber": "SN-2", "status": "Available", "checkedOutBy": None},
    )
    assert resp.status_code == 200
    item = resp.json()["data"]
    assert item["itemName"] == "Renamed"
    assert item["serialNumber"] == "SN-2"
    assert item["status"] == "Checked Out"
    assert item["checkedOutBy"] == "alice"


def test_update_clears_serial_with_blank_value(client, create_item):
    create_item("UPD-2", serial_number="SN-1")
    resp = client.put("/api/items/UPD-2", json={"serialNumber": "  "})
    assert resp.status_code == 200
    assert resp.json()["data"]["serialNumber"] is None


def test_update_errors(client, create_item):
    create_item("UPD-3")
    assert client.put("/api/items/UPD-3", json={}).status_code == 400
    assert client.put("/api/items/UPD-3", json={"itemName": " "}).status_code == 422
    assert client.put("/api/items/MISSING", json={"itemName": "X"}).status_code == 404


def test_delete_item_removes_history(client, create_item):
    create_item("DEL-1")
    resp = client.delete("/api/items/DEL-1")
    assert resp.status_code == 200
    assert resp.json()["message"] == 'Item "DEL-1" deleted successfully'
    assert client.get("/api/items/DEL-1").status_code == 404
    assert client.get("/api/items/DEL-1/history").status_code == 404
    assert client.delete("/api/items/DEL-1").status_code == 404

    # the key can be registered again with a clean history
    create_item("DEL-1")
    history = client.get("/api/items/DEL-1/history").json()["data"]["history"]
    assert [h["action"] for h in history] == ["created"]


def test_list_items_with_filters_and_stats(client, create_item):
    create_item("CAM-1", "Canon Camera", "C-100")
    create_item("CAM-2", "Nikon Camera", "N-200")
    create_item("DRL-1", "Drill", "D-300")
    client.post("/api/checkin-checkout", json={"itemId": "CAM-2", "serialNumber": "N-200", "action": "checkout"})

    data = client.get("/api/items").json()["data"]
    assert data["count"] == 3
    assert data["stats"] == {"totalItems": 3, "availableItems": 2, "checkedOutItems": 1}
    # most recently updated first
    assert data["items"][0]["itemId"] == "CAM-2"

    data = client.get("/api/items", params={"search": "camera"}).json()["data"]
    assert {i["itemId"] for i in data["items"]} == {"CAM-1", "CAM-2"}

    data = client.get("/api/items", params={"search": "D-300"}).json()["data"]
    assert [i["itemId"] for i in data["items"]] == ["DRL-1"]

    data = client.get("/api/items", params={"status": "Checked Out"}).json()["data"]
    assert [i["itemId"] for i in data["items"]] == ["CAM-2"]

    data = client.get("/api/items", params={"limit": 2, "page": 2}).json()["data"]
    assert data["count"] == 1


def test_list_items_rejects_bad_filters(client):
    assert client.get("/api/items", params={"status": "Lost"}).status_code == 422
    assert client.get("/api/items", params={"limit": 0}).status_code == 422
    assert client.get("/api/items", params={"limit": 101}).status_code == 422
    assert client.get("/api/items", params={"page": 0}).status_code == 422


def test_create_item_from_urlencoded_form(client):
    resp = client.post("/api/items", data={"itemId": "FORM-1", "itemName": "Form item", "serialNumber": "F-1"})
    assert resp.status_code == 201, resp.text
    item = resp.json()["data"]
    assert item["itemName"] == "Form item"
    assert item["serialNumber"] == "F-1"
    assert item["photoFilename"] is None


def test_search_treats_wildcards_literally(client, create_item):
    create_item("AB1", "Tripod")
    create_item("A_1", "Monitor")
    create_item("PCT-1", "100% cotton bag")

    data = client.get("/api/items", params={"search": "A_"}).json()["data"]
    assert [i["itemId"] for i in data["items"]] == ["A_1"]

    data = client.get("/api/items", params={"search": "%"}).json()["data"]
    assert [i["itemId"] for i in data["items"]] == ["PCT-1"]


def test_status_values_are_shared_with_schema():
    assert get_args(ItemStatus) == ITEM_STATUSES


async def test_database_rejects_unknown_status(repo):
    await repo.create_item("ST-1", "Scanner")
    with pytest.raises(IntegrityError):
        await repo.conditional_update("ST-1", "Available", {"status": "Lost"})
    await repo.rollback()
    assert (await repo.find_by_key("ST-1")).status == "Available"
