# ============================================================================
# FILE: app/api/dependencies.py
# Shared route dependencies: admin auth, upstream client, per-request settings
# ============================================================================
import logging
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.config.settings import get_settings
from app.services.settings.settings_service import BookingSettings, SettingsService
from app.services.square.client import SquareClient, get_square_client

logger = logging.getLogger(__name__)

# ============================================================================
# Security Schemes
# ============================================================================

admin_security = HTTPBearer(
    scheme_name="Admin API Key",
    description="Enter the admin API key",
    auto_error=False,
)


def require_admin(
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(admin_security)
) -> None:
    """Reject the request unless it carries the configured admin key"""
    expected = get_settings().ADMIN_API_KEY

    if not expected:
        logger.error("ADMIN_API_KEY is not configured; admin routes are disabled")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin access is not configured",
        )

    if not credentials or not secrets.compare_digest(credentials.credentials.encode(), expected.encode()):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing admin key",
            headers={"WWW-Authenticate": "Bearer"},
        )


# ============================================================================
# Request-scoped helpers
# ============================================================================

def get_square() -> SquareClient:
    return get_square_client()


def get_booking_settings(db: Session = Depends(get_db)) -> BookingSettings:
    """Settings are read once per request"""
    return SettingsService.load(db)


def get_correlation_id(request: Request) -> Optional[str]:
    return getattr(request.state, "correlation_id", None)
