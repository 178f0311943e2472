# app/services/catalog/catalog_service.py
"""
Service catalog lookups.

Local mode reads the services table. Square mode reads the Square catalog
(cached in-process for SQUARE_CATALOG_CACHE_SECONDS) and falls back to the
local table when Square is unreachable.
"""
import logging
import time
import uuid
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from app.config.settings import get_settings
from app.core.errors import NotFound, UpstreamUnavailable
from app.models.service import Service
from app.schemas.booking import ServiceInfo
from app.services.square.client import SquareClient, get_square_client

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 60

_cached_services: Optional[List[ServiceInfo]] = None
_cache_timestamp: float = 0.0


def clear_catalog_cache() -> None:
    global _cached_services, _cache_timestamp
    _cached_services = None
    _cache_timestamp = 0.0


def service_info_from_model(service: Service) -> ServiceInfo:
    return ServiceInfo(
        id=str(service.id),
        name=service.name,
        description=service.description,
        duration_minutes=service.duration_minutes,
        price_cents=service.price_cents,
        price_display=service.formatted_price,
        is_active=bool(service.is_active),
        sort_order=service.sort_order or 0,
        square_catalog_id=service.square_catalog_id,
        square_variation_id=service.square_variation_id,
    )


def transform_catalog_item(item: Dict[str, Any], index: int) -> Optional[ServiceInfo]:
    """Map a Square ITEM object (first variation) onto ServiceInfo"""
    if item.get("type") != "ITEM" or not item.get("item_data"):
        return None

    item_data = item["item_data"]
    variations = item_data.get("variations") or []
    if not variations or not variations[0].get("item_variation_data"):
        return None

    variation = variations[0]
    variation_data = variation["item_variation_data"]

    # Square stores service duration in milliseconds
    duration_ms = variation_data.get("service_duration")
    duration_minutes = round(int(duration_ms) / 60000) if duration_ms else DEFAULT_DURATION_MINUTES
    if duration_minutes <= 0:
        duration_minutes = DEFAULT_DURATION_MINUTES

    price_money = variation_data.get("price_money") or {}
    price_cents = int(price_money["amount"]) if price_money.get("amount") is not None else None
    price_display = f"${price_cents / 100:.0f}" if price_cents is not None else "Price Varies"

    return ServiceInfo(
        id=item["id"],
        name=item_data.get("name") or "",
        description=item_data.get("description"),
        duration_minutes=duration_minutes,
        price_cents=price_cents,
        price_display=price_display,
        is_active=True,
        sort_order=index,
        square_catalog_id=item["id"],
        square_variation_id=variation.get("id"),
    )


class CatalogService:

    @staticmethod
    def list_local(db: Session) -> List[ServiceInfo]:
        services = db.query(Service).filter(
            Service.is_active == True  # noqa: E712
        ).order_by(Service.sort_order.asc()).all()
        return [service_info_from_model(s) for s in services]

    @staticmethod
    def get_local(db: Session, service_id: str) -> Optional[ServiceInfo]:
        try:
            service_uuid = uuid.UUID(str(service_id))
        except ValueError:
            return None

        service = db.query(Service).filter(Service.id == service_uuid).first()
        return service_info_from_model(service) if service else None

    @staticmethod
    async def list_square(client: Optional[SquareClient] = None) -> List[ServiceInfo]:
        global _cached_services, _cache_timestamp

        ttl = get_settings().SQUARE_CATALOG_CACHE_SECONDS
        if _cached_services is not None and time.monotonic() - _cache_timestamp < ttl:
            return _cached_services

        client = client or get_square_client()
        items = await client.list_catalog_items()

        services: List[ServiceInfo] = []
        for item in items:
            service = transform_catalog_item(item, len(services))
            if service:
                services.append(service)

        _cached_services = services
        _cache_timestamp = time.monotonic()
        logger.info(f"Loaded {len(services)} services from Square catalog")
        return services

    @staticmethod
    async def list_services(db: Session, client: Optional[SquareClient] = None) -> List[ServiceInfo]:
        if get_settings().SCHEDULING_BACKEND != "square":
            return CatalogService.list_local(db)

        try:
            return await CatalogService.list_square(client)
        except UpstreamUnavailable as e:
            logger.warning(f"Square catalog unavailable ({e.message}), falling back to local services")
            return CatalogService.list_local(db)

    @staticmethod
    async def get_service(db: Session, service_id: str, client: Optional[SquareClient] = None) -> ServiceInfo:
        """Resolve a service by id or raise NotFound"""
        if get_settings().SCHEDULING_BACKEND == "square":
            try:
                services = await CatalogService.list_square(client)
                match = next((s for s in services if s.id == service_id), None)
                if match:
                    return match
            except UpstreamUnavailable as e:
                logger.warning(f"Square catalog unavailable ({e.message}), falling back to local services")

        service = CatalogService.get_local(db, service_id)
        if not service:
            raise NotFound("Service not found")
        return service
