# ============================================================================
# FILE: app/api/v1/admin/appointments.py
# ============================================================================
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.dependencies import get_correlation_id, get_square, require_admin
from app.config.database import get_db
from app.models.appointment import AppointmentStatus
from app.schemas.admin import AppointmentUpdateRequest
from app.services.appointment.appointment_service import AppointmentService, serialize_admin
from app.services.notifications.dispatcher import dispatch_events
from app.services.square.client import SquareClient

router = APIRouter(prefix="/admin/appointments", dependencies=[Depends(require_admin)])


@router.get("")
async def list_appointments(
        status: Optional[AppointmentStatus] = Query(None),
        start_date: Optional[date] = Query(None),
        end_date: Optional[date] = Query(None),
        skip: int = Query(0, ge=0),
        limit: int = Query(50, ge=1, le=200),
        db: Session = Depends(get_db),
):
    return AppointmentService.list_appointments(
        db,
        status=status.value if status else None,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit,
    )


@router.get("/{appointment_id}")
async def get_appointment(appointment_id: str, db: Session = Depends(get_db)):
    return serialize_admin(AppointmentService.get_appointment(db, appointment_id))


@router.patch("/{appointment_id}")
async def update_appointment(
        appointment_id: str,
        request: AppointmentUpdateRequest,
        db: Session = Depends(get_db),
        square: SquareClient = Depends(get_square),
        correlation_id: Optional[str] = Depends(get_correlation_id),
):
    result = await AppointmentService.update_appointment(
        db,
        appointment_id,
        status=request.status,
        admin_notes=request.admin_notes,
        square=square,
        correlation_id=correlation_id,
    )
    dispatch_events(result.events)
    return serialize_admin(result.appointment)
