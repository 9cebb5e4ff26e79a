import pytest

from helpers import PDF_BYTES, make_image_bytes
from inventory_client import ApiError, InventoryApiClient, make_client_from_env


@pytest.fixture
def api(client):
    # TestClient speaks the requests-style API the client expects
    return InventoryApiClient(base_url="http://testserver/api", session=client)


def test_item_lifecycle(api):
    item = api.create_item("CL-1", "Laptop", "SN-1")
    assert item["itemId"] == "CL-1"

    assert api.update_item("CL-1", item_name="Laptop 2")["itemName"] == "Laptop 2"
    assert api.get_item("CL-1")["itemName"] == "Laptop 2"

    listing = api.list_items(search="Laptop")
    assert listing["count"] == 1
    assert listing["stats"]["totalItems"] == 1

    api.delete_item("CL-1")
    with pytest.raises(ApiError) as exc:
        api.get_item("CL-1")
    assert exc.value.status_code == 404


def test_check_in_out_outcomes(api):
    api.create_item("CL-2", "Camera")

    out = api.check_out("CL-2", "SN-2", "alice")
    assert out.success
    assert out.item["checkedOutBy"] == "alice"

    again = api.check_out("CL-2", "SN-2", "bob")
    assert not again.success
    assert again.reason == "already_checked_out"
    assert again.item["checkedOutBy"] == "alice"

    back = api.check_in("CL-2", "SN-2", "carol")
    assert back.success
    assert back.item["status"] == "Available"

    missing = api.check_out("CL-404", "SN")
    assert missing.requires_registration
    assert missing.suggested_item_id == "CL-404"

    history = api.get_history("CL-2")["history"]
    assert [h["action"] for h in history] == ["checkin", "checkout", "created"]
    assert api.get_stats()["availableItems"] == 1


def test_validation_errors_raise(api):
    with pytest.raises(ApiError) as exc:
        api.check_in_out("CL-3", "SN", "borrow")
    assert exc.value.status_code == 422


def test_create_with_attachments(api, tmp_path):
    photo = tmp_path / "photo.jpg"
    photo.write_bytes(make_image_bytes((400, 300), fmt="JPEG"))
    receipt = tmp_path / "receipt.pdf"
    receipt.write_bytes(PDF_BYTES)

    with photo.open("rb") as p, receipt.open("rb") as r:
        item = api.create_item("CL-4", "Drill", photo=p, receipts=[r])

    assert item["photoFilename"].endswith(".webp")
    receipts = api.get_receipts("CL-4")
    assert [r["originalName"] for r in receipts] == ["receipt.pdf"]
    assert api.export_csv().startswith('"Item ID"')


def test_make_client_from_env(monkeypatch):
    monkeypatch.delenv("INVENTORY_API_URL", raising=False)
    with pytest.raises(RuntimeError):
        make_client_from_env()
    monkeypatch.setenv("INVENTORY_API_URL", "http://localhost:5000/api")
    assert make_client_from_env().base_url == "http://localhost:5000/api"
