from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import FileResponse

from core.config import Settings
from core.dependencies import get_repository, get_settings
from core.uploads import stored_path
from db.repository import InventoryRepository

router = APIRouter()


@router.get("/photos/{filename}", response_class=FileResponse)
async def serve_photo(filename: str, settings: Settings = Depends(get_settings)):
    """Serve a stored item photo. No auth so <img src> works."""
    path = stored_path(settings.photos_dir, filename)
    if not path:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Photo not found")
    return FileResponse(path, media_type="image/webp")


@router.get("/receipts/{receipt_id}/download", response_class=FileResponse)
async def download_receipt(
    receipt_id: int,
    repo: InventoryRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
):
    receipt = await repo.get_receipt(receipt_id)
    if not receipt:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Receipt not found")
    path = stored_path(settings.receipts_dir, receipt.filename)
    if not path:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Receipt file is missing")
    return FileResponse(path, media_type=receipt.mime_type, filename=receipt.original_name)
