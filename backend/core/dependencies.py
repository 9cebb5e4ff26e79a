from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core.checkinout import CheckInOutEngine
from core.config import Settings
from db.database import get_async_session
from db.repository import InventoryRepository


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_repository(db: AsyncSession = Depends(get_async_session)) -> InventoryRepository:
    return InventoryRepository(db)


def get_checkinout_engine(repo: InventoryRepository = Depends(get_repository)) -> CheckInOutEngine:
    return CheckInOutEngine(repo)
