# ============================================================================
# FILE: app/api/v1/public/services.py
# ============================================================================
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.api.dependencies import get_square
from app.config.database import get_db
from app.schemas.booking import ServiceInfo
from app.services.catalog.catalog_service import CatalogService
from app.services.square.client import SquareClient

router = APIRouter(prefix="/services")


@router.get("", response_model=List[ServiceInfo])
async def list_services(db: Session = Depends(get_db), square: SquareClient = Depends(get_square)):
    """Active bookable services, ordered for display"""
    return await CatalogService.list_services(db, square)
