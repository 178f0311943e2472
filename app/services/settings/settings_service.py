# app/services/settings/settings_service.py
"""
Typed access to the admin_settings key/value table.

Values arrive in whatever shape the admin screen saved them: JSON numbers,
plain strings, or quote-wrapped strings like '"15"'. They are coerced once per
request into BookingSettings; anything unparseable falls back to the default.
"""
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from app.config.settings import get_settings
from app.core.errors import NotFound, ValidationFailed
from app.models.admin_setting import AdminSetting

logger = logging.getLogger(__name__)

INTEGER_KEYS = {"buffer_time_minutes", "advance_booking_days"}
MAX_BUFFER_MINUTES = 24 * 60
MAX_ADVANCE_DAYS = 3650
INTEGER_LIMITS = {"buffer_time_minutes": MAX_BUFFER_MINUTES, "advance_booking_days": MAX_ADVANCE_DAYS}
KNOWN_KEYS = INTEGER_KEYS | {"business_name", "business_email", "business_phone", "venmo_handle"}


class BookingSettings(BaseModel):
    business_name: str = "Our Studio"
    business_email: Optional[str] = None
    business_phone: Optional[str] = None
    venmo_handle: Optional[str] = None
    advance_booking_days: int = Field(default=60, ge=0, le=MAX_ADVANCE_DAYS)
    buffer_time_minutes: int = Field(default=15, ge=0, le=MAX_BUFFER_MINUTES)
    slot_interval_minutes: int = Field(default=30, gt=0)
    min_lead_minutes: int = Field(default=60, ge=0)


def _unwrap(raw: Any) -> Any:
    if isinstance(raw, str):
        value = raw.strip()
        while len(value) >= 2 and value[0] == value[-1] == '"':
            value = value[1:-1].strip()
        return value
    return raw


def coerce_int(raw: Any, default: int, maximum: Optional[int] = None) -> int:
    value = _unwrap(raw)
    if value is None or isinstance(value, bool):
        return default
    try:
        result = int(value) if isinstance(value, (int, float)) else int(str(value))
    except (ValueError, OverflowError):
        return default
    if result < 0 or (maximum is not None and result > maximum):
        return default
    return result


def coerce_str(raw: Any) -> Optional[str]:
    value = _unwrap(raw)
    if value is None or value == "":
        return None
    return str(value)


class SettingsService:

    @staticmethod
    def list_settings(db: Session) -> List[Dict[str, Any]]:
        rows = db.query(AdminSetting).order_by(AdminSetting.key.asc()).all()
        return [row.to_dict() for row in rows]

    @staticmethod
    def get_raw(db: Session) -> Dict[str, Any]:
        return {row.key: row.value for row in db.query(AdminSetting).all()}

    @staticmethod
    def load(db: Session) -> BookingSettings:
        """Read every setting once and build the typed view with defaults"""
        app_settings = get_settings()
        raw = SettingsService.get_raw(db)
        defaults = BookingSettings()

        buffer_minutes = coerce_int(
            raw.get("buffer_time_minutes"), app_settings.DEFAULT_BUFFER_MINUTES, MAX_BUFFER_MINUTES
        )
        if "buffer_time_minutes" in raw and coerce_int(raw["buffer_time_minutes"], -1, MAX_BUFFER_MINUTES) < 0:
            logger.warning(
                f"Unusable buffer_time_minutes {raw['buffer_time_minutes']!r}, "
                f"using {app_settings.DEFAULT_BUFFER_MINUTES}"
            )

        return BookingSettings(
            business_name=coerce_str(raw.get("business_name")) or defaults.business_name,
            business_email=coerce_str(raw.get("business_email")),
            business_phone=coerce_str(raw.get("business_phone")),
            venmo_handle=coerce_str(raw.get("venmo_handle")),
            advance_booking_days=coerce_int(
                raw.get("advance_booking_days"), defaults.advance_booking_days, MAX_ADVANCE_DAYS
            ),
            buffer_time_minutes=buffer_minutes,
            slot_interval_minutes=app_settings.SLOT_INTERVAL_MINUTES,
            min_lead_minutes=app_settings.MIN_LEAD_MINUTES,
        )

    @staticmethod
    def update_setting(db: Session, key: str, value: Any) -> Dict[str, Any]:
        if not key or value is None:
            raise ValidationFailed("Key and value are required")

        if key in INTEGER_KEYS and coerce_int(value, -1, INTEGER_LIMITS[key]) < 0:
            raise ValidationFailed(
                f"{key} must be an integer between 0 and {INTEGER_LIMITS[key]}",
                details={"field": key, "value": value},
            )

        setting = db.query(AdminSetting).filter(AdminSetting.key == key).first()
        if not setting:
            if key not in KNOWN_KEYS:
                raise NotFound(f"Setting '{key}' not found")
            setting = AdminSetting(key=key)
            db.add(setting)

        setting.value = value
        db.commit()
        db.refresh(setting)

        logger.info(f"Setting {key} updated")
        return setting.to_dict()
