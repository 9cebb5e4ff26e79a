import pytest
from fastapi.testclient import TestClient

from core.config import Settings
from db.database import build_engine, build_session_maker, create_db_and_tables
from db.repository import InventoryRepository
from main import create_app


@pytest.fixture
def settings(tmp_path):
    return Settings.for_database(str(tmp_path / "database" / "inventory.db"), str(tmp_path / "uploads"))


@pytest.fixture
def client(settings):
    app = create_app(settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def create_item(client):
    def _create(item_id="X1", item_name="Laptop", serial_number=None):
        payload = {"itemId": item_id, "itemName": item_name}
        if serial_number is not None:
            payload["serialNumber"] = serial_number
        resp = client.post("/api/items", json=payload)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]
    return _create


@pytest.fixture
async def db_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'engine.db'}")
    await create_db_and_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    return build_session_maker(db_engine)


@pytest.fixture
async def repo(session_maker):
    async with session_maker() as session:
        yield InventoryRepository(session)
