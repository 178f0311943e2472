# ============================================================================
# FILE: app/api/v1/admin/settings.py
# ============================================================================
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.dependencies import require_admin
from app.config.database import get_db
from app.schemas.admin import SettingUpdateRequest
from app.services.settings.settings_service import SettingsService

router = APIRouter(prefix="/admin/settings", dependencies=[Depends(require_admin)])


@router.get("")
async def list_settings(db: Session = Depends(get_db)):
    """Raw stored rows plus the typed view the booking flow actually uses"""
    return {
        "settings": SettingsService.list_settings(db),
        "effective": SettingsService.load(db).model_dump(),
    }


@router.put("")
async def update_setting(request: SettingUpdateRequest, db: Session = Depends(get_db)):
    return {"success": True, "setting": SettingsService.update_setting(db, request.key, request.value)}
