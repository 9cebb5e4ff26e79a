import json
import logging
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, Request, UploadFile, status
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from starlette.datastructures import UploadFile as FormFile

from core.config import Settings
from core.dependencies import get_repository, get_settings
from core.uploads import (
    MAX_RECEIPTS_PER_REQUEST,
    UploadError,
    remove_file,
    save_photo,
    save_receipt,
)
from db.repository import InventoryRepository
from schemas.items import ItemCreate, ItemStatus, ItemUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _not_found(item_id: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f'Item with ID "{item_id}" not found')


async def _get_item_or_404(repo: InventoryRepository, item_id: str):
    item = await repo.find_by_key(item_id.strip())
    if not item:
        raise _not_found(item_id)
    return item


def _discard_uploads(settings: Settings, photo_filename: Optional[str], saved_receipts: List[Dict]) -> None:
    remove_file(settings.photos_dir, photo_filename)
    for r in saved_receipts:
        remove_file(settings.receipts_dir, r["filename"])


async def _read_create_request(request: Request) -> tuple[Dict, Optional[FormFile], List[FormFile]]:
    """Accept a JSON body or a form; multipart forms may carry `photo` and `receipts`."""
    content_type = (request.headers.get("content-type") or "").lower()
    if "multipart/form-data" in content_type or "application/x-www-form-urlencoded" in content_type:
        form = await request.form()
        raw = {k: form.get(k) for k in ("itemId", "itemName", "serialNumber") if form.get(k) is not None}
        photo = form.get("photo")
        receipts = [f for f in form.getlist("receipts") if isinstance(f, FormFile)]
        return raw, photo if isinstance(photo, FormFile) else None, receipts
    try:
        raw = await request.json()
    except json.JSONDecodeError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request body must be JSON or form data")
    if not isinstance(raw, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request body must be a JSON object")
    return raw, None, []


@router.get("/items", response_model=Dict)
async def list_items(
    search: Optional[str] = Query(None, min_length=1, max_length=100),
    status_filter: Optional[ItemStatus] = Query(None, alias="status"),
    page: Optional[int] = Query(None, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    repo: InventoryRepository = Depends(get_repository),
):
    """List items, optionally filtered by search term and status"""
    items = await repo.list_items(
        search=search.strip() if search else None,
        status=status_filter,
        page=page,
        limit=limit,
    )
    stats = await repo.get_stats()
    return {
        "success": True,
        "data": {
            "items": [i.to_schema for i in items],
            "stats": stats,
            "count": len(items),
        },
    }


@router.get("/items/{item_id}", response_model=Dict)
async def get_item(item_id: str, repo: InventoryRepository = Depends(get_repository)):
    """Get an item by its key"""
    item = await _get_item_or_404(repo, item_id)
    return {"success": True, "data": item.to_schema}


@router.post("/items", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_item(
    request: Request,
    repo: InventoryRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
):
    """
    Register a new item (status Available).
    Accepts JSON, or multipart with an optional `photo` and up to 10 PDF `receipts`.
    """
    raw, photo, receipts = await _read_create_request(request)
    try:
        payload = ItemCreate.model_validate(raw)
    except ValidationError as e:
        raise RequestValidationError(e.errors())

    if await repo.find_by_key(payload.item_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f'Item with ID "{payload.item_id}" already exists',
        )
    if len(receipts) > MAX_RECEIPTS_PER_REQUEST:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"At most {MAX_RECEIPTS_PER_REQUEST} receipts can be uploaded at once",
        )

    photo_filename = None
    saved_receipts = []
    try:
        if photo is not None:
            photo_filename = await run_in_threadpool(
                save_photo, await photo.read(), photo.content_type, photo.filename,
                settings.photos_dir, settings.max_upload_bytes,
            )
        for f in receipts:
            saved_receipts.append(await run_in_threadpool(
                save_receipt, await f.read(), f.content_type, f.filename,
                settings.receipts_dir, settings.max_upload_bytes,
            ))
    except UploadError as e:
        _discard_uploads(settings, photo_filename, saved_receipts)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    try:
        item = await repo.create_item(
            item_id=payload.item_id,
            item_name=payload.item_name,
            serial_number=payload.serial_number,
            photo_filename=photo_filename,
            receipts=saved_receipts,
        )
    except IntegrityError:
        await repo.rollback()
        _discard_uploads(settings, photo_filename, saved_receipts)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f'Item with ID "{payload.item_id}" already exists',
        )
    except Exception:
        await repo.rollback()
        _discard_uploads(settings, photo_filename, saved_receipts)
        raise
    logger.info("Created item %s with %d receipt(s)", item.item_id, len(saved_receipts))

    return {
        "success": True,
        "message": f'Item "{item.item_id}" created successfully',
        "data": item.to_schema,
    }


@router.put("/items/{item_id}", response_model=Dict)
async def update_item(
    item_id: str,
    payload: ItemUpdate,
    repo: InventoryRepository = Depends(get_repository),
):
    """Edit name and serial number. Status only changes through check-in/check-out."""
    item = await _get_item_or_404(repo, item_id)

    data = payload.model_dump(exclude_unset=True)
    fields = {}
    if data.get("item_name") is not None:
        fields["item_name"] = data["item_name"]
    if "serial_number" in data:
        fields["serial_number"] = data["serial_number"]
    if not fields:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No updatable fields supplied")

    await repo.update_item_fields(item.item_id, fields)
    updated = await repo.find_by_key(item.item_id)
    return {
        "success": True,
        "message": f'Item "{item.item_id}" updated successfully',
        "data": updated.to_schema,
    }


@router.post("/items/{item_id}/photo", response_model=Dict)
async def upload_item_photo(
    item_id: str,
    photo: Optional[UploadFile] = File(None),
    repo: InventoryRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
):
    """Upload or replace the item photo"""
    item = await _get_item_or_404(repo, item_id)
    if photo is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No photo uploaded")

    try:
        filename = await run_in_threadpool(
            save_photo, await photo.read(), photo.content_type, photo.filename,
            settings.photos_dir, settings.max_upload_bytes,
        )
    except UploadError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    previous = item.photo_filename
    await repo.update_item_fields(item.item_id, {"photo_filename": filename})
    if previous and previous != filename:
        remove_file(settings.photos_dir, previous)

    updated = await repo.find_by_key(item.item_id)
    return {"success": True, "message": "Photo updated successfully", "data": updated.to_schema}


@router.delete("/items/{item_id}", response_model=Dict)
async def delete_item(
    item_id: str,
    repo: InventoryRepository = Depends(get_repository),
    settings: Settings = Depends(get_settings),
):
    """Delete an item together with its history and receipts (no undo)"""
    item = await _get_item_or_404(repo, item_id)
    receipts = await repo.get_receipts(item.item_id)
    receipt_files = [r.filename for r in receipts]
    photo_filename = item.photo_filename

    if not await repo.delete_item(item.item_id):
        raise _not_found(item_id)

    for filename in receipt_files:
        remove_file(settings.receipts_dir, filename)
    remove_file(settings.photos_dir, photo_filename)
    logger.info("Deleted item %s", item.item_id)

    return {"success": True, "message": f'Item "{item.item_id}" deleted successfully'}


@router.get("/items/{item_id}/history", response_model=Dict)
async def get_item_history(item_id: str, repo: InventoryRepository = Depends(get_repository)):
    """Item plus its history, newest first"""
    item = await _get_item_or_404(repo, item_id)
    history = await repo.get_history(item.item_id)
    return {
        "success": True,
        "data": {"item": item.to_schema, "history": [h.to_schema for h in history]},
    }


@router.get("/items/{item_id}/receipts", response_model=Dict)
async def get_item_receipts(item_id: str, repo: InventoryRepository = Depends(get_repository)):
    item = await _get_item_or_404(repo, item_id)
    receipts = await repo.get_receipts(item.item_id)
    return {"success": True, "data": [r.to_schema for r in receipts]}
