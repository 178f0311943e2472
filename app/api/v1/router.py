"""
API v1 router setup
Organized into: public booking routes and admin routes (bearer admin key)
"""
from fastapi import APIRouter

from app.api.v1 import calendar
from app.api.v1.public import appointments, services
from app.api.v1.admin import appointments as admin_appointments, availability, settings as admin_settings
from app.config.settings import get_settings

api_v1_router = APIRouter()

# ============================================================================
# PUBLIC ROUTES (No authentication required)
# ============================================================================
api_v1_router.include_router(
    services.router,
    tags=["Public"]
)

api_v1_router.include_router(
    appointments.router,
    tags=["Public"]
)

api_v1_router.include_router(
    calendar.router,
    tags=["Public"]
)

# ============================================================================
# ADMIN ROUTES (Bearer ADMIN_API_KEY required)
# ============================================================================
api_v1_router.include_router(
    admin_appointments.router,
    tags=["Admin"]
)

api_v1_router.include_router(
    availability.router,
    tags=["Admin"]
)

api_v1_router.include_router(
    admin_settings.router,
    tags=["Admin"]
)


# ============================================================================
# ROOT ENDPOINT - API Info
# ============================================================================
@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """API information and the scheduling backend in use"""
    return {
        "version": "1.0",
        "scheduling_backend": get_settings().SCHEDULING_BACKEND,
        "authentication": {
            "public": "No authentication required",
            "admin": "Bearer admin API key required",
        }
    }
