"""Health checks and monitoring endpoints"""
import logging

from fastapi import APIRouter, Depends
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.config.database import get_db
from app.config.redis import broker_reachable
from app.config.settings import get_settings

logger = logging.getLogger(__name__)
health_router = APIRouter()


@health_router.get("/")
async def health_check():
    """Basic health check"""
    return {"status": "healthy", "service": "booking-api"}


@health_router.get("/detailed")
async def detailed_health_check(db: Session = Depends(get_db)):
    """Database and Celery broker reachability"""
    checks = {
        "api": "healthy",
        "database": "unknown",
        "redis": "unknown",
        "scheduling_backend": get_settings().SCHEDULING_BACKEND,
    }

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except SQLAlchemyError as e:
        logger.warning(f"Database health check failed: {e}")
        checks["database"] = f"unhealthy: {e}"

    try:
        await broker_reachable()
        checks["redis"] = "healthy"
    except (RedisError, OSError) as e:
        logger.warning(f"Redis health check failed: {e}")
        checks["redis"] = f"unhealthy: {e}"

    components = (checks["api"], checks["database"], checks["redis"])
    checks["overall"] = "healthy" if all(c == "healthy" for c in components) else "degraded"
    return checks
