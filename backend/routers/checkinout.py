from typing import Dict

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from core.checkinout import CheckInOutEngine, CheckInOutRequestError
from core.dependencies import get_checkinout_engine
from schemas.items import CheckInOutRequest

router = APIRouter()


@router.post("/checkin-checkout", response_model=Dict)
async def process_checkin_checkout(
    payload: CheckInOutRequest,
    engine: CheckInOutEngine = Depends(get_checkinout_engine),
):
    """
    Check an item in or out.

    - 200: transition applied, body carries the updated item.
    - 404: unknown item; `requiresRegistration` invites the client to register it.
    - 409: item is already in the requested state, or a concurrent request won.
    """
    try:
        result = await engine.process(
            payload.item_id,
            payload.serial_number,
            payload.action,
            payload.user_id,
        )
    except CheckInOutRequestError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    if result.success:
        return {"success": True, "message": result.message, "data": result.item.to_schema}

    if result.requires_registration:
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={
                "success": False,
                "message": result.message,
                "requiresRegistration": True,
                "suggestedItemId": result.suggested_item_id,
            },
        )

    return JSONResponse(
        status_code=status.HTTP_409_CONFLICT,
        content=jsonable_encoder({
            "success": False,
            "message": result.message,
            "reason": result.outcome.value,
            "data": result.item.to_schema if result.item else None,
        }),
    )
