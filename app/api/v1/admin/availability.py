# ============================================================================
# FILE: app/api/v1/admin/availability.py
# Weekly hours and blocked time
# ============================================================================
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.orm import Session

from app.api.dependencies import require_admin
from app.config.database import get_db
from app.schemas.admin import AvailabilityUpdateRequest, BlockedTimeCreateRequest
from app.services.availability.availability_service import AvailabilityService

router = APIRouter(prefix="/admin", dependencies=[Depends(require_admin)])


@router.get("/availability")
async def get_availability(db: Session = Depends(get_db)):
    return {"availability": AvailabilityService.list_rules(db)}


@router.put("/availability")
async def save_availability(request: AvailabilityUpdateRequest, db: Session = Depends(get_db)):
    return {"success": True, "availability": AvailabilityService.save_rules(db, request.availability)}


@router.get("/blocked-times")
async def list_blocked_times(
        from_date: Optional[date] = Query(None, alias="from"),
        to_date: Optional[date] = Query(None, alias="to"),
        db: Session = Depends(get_db),
):
    return {"blocked_times": AvailabilityService.list_blocked(db, from_date, to_date)}


@router.post("/blocked-times", status_code=201)
async def create_blocked_time(request: BlockedTimeCreateRequest, db: Session = Depends(get_db)):
    return {"success": True, "blocked_time": AvailabilityService.create_blocked(db, request)}


@router.delete("/blocked-times/{blocked_id}", status_code=204)
async def delete_blocked_time(blocked_id: str, db: Session = Depends(get_db)):
    AvailabilityService.delete_blocked(db, blocked_id)
    return Response(status_code=204)
