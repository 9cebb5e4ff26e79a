from typing import Dict

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from core.converters import items_to_csv
from core.dependencies import get_repository
from db.repository import InventoryRepository

router = APIRouter()


@router.get("/stats", response_model=Dict)
async def get_stats(repo: InventoryRepository = Depends(get_repository)):
    """Item counts by status"""
    return {"success": True, "data": await repo.get_stats()}


@router.get("/export/csv", response_class=Response)
async def export_csv(repo: InventoryRepository = Depends(get_repository)):
    """Download the whole inventory as CSV"""
    items = await repo.list_items()
    return Response(
        content=items_to_csv(items),
        media_type="text/csv",
        headers={"Content-Disposition": "attachment; filename=inventory-export.csv"},
    )
