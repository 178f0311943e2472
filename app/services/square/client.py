# app/services/square/client.py
"""
Thin async client for the Square REST API.

Only the calls the booking flow needs: availability search, catalog listing,
customers, bookings and payments. Every non-2xx response or transport error is
raised as SquareAPIError so callers can fall back or surface a 5xx.
"""
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx

from app.config.settings import get_settings
from app.core.errors import UpstreamUnavailable
from app.services.scheduling.time_utils import ensure_utc

logger = logging.getLogger(__name__)


class SquareAPIError(UpstreamUnavailable):
    def __init__(self, message: str, errors: Optional[List[Dict]] = None):
        super().__init__(message, details={"square_errors": errors} if errors else None)


def _iso(instant: datetime) -> str:
    return ensure_utc(instant).strftime("%Y-%m-%dT%H:%M:%SZ")


class SquareClient:
    """Square API wrapper bound to one location"""

    def __init__(
            self,
            access_token: Optional[str] = None,
            location_id: Optional[str] = None,
            base_url: Optional[str] = None,
            transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.access_token = access_token if access_token is not None else settings.SQUARE_ACCESS_TOKEN
        self.location_id = location_id if location_id is not None else settings.SQUARE_LOCATION_ID
        self.base_url = base_url or settings.square_api_url
        self.api_version = settings.SQUARE_API_VERSION
        self.team_member_id = settings.SQUARE_TEAM_MEMBER_ID
        self.timeout = settings.SQUARE_TIMEOUT_SECONDS
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "Square-Version": self.api_version,
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    async def _request(
            self,
            method: str,
            path: str,
            json: Optional[Dict[str, Any]] = None,
            params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as http_client:
                response = await http_client.request(method, url, headers=self._headers(), json=json, params=params)
        except httpx.HTTPError as e:
            logger.error(f"Square {method} {path} failed: {e}")
            raise SquareAPIError(f"Square request failed: {e}")

        if response.status_code >= 400:
            try:
                errors = response.json().get("errors", [])
            except ValueError:
                errors = []
            logger.error(f"Square {method} {path} returned {response.status_code}: {errors or response.text}")
            raise SquareAPIError(
                f"Square returned {response.status_code}",
                errors=errors,
            )

        return response.json() if response.content else {}

    # ------------------------------------------------------------------
    # Bookings / availability
    # ------------------------------------------------------------------

    async def search_availability(
            self,
            start_at: datetime,
            end_at: datetime,
            service_variation_id: str
    ) -> List[Dict[str, Any]]:
        body = {
            "query": {
                "filter": {
                    "start_at_range": {"start_at": _iso(start_at), "end_at": _iso(end_at)},
                    "location_id": self.location_id,
                    "segment_filters": [{"service_variation_id": service_variation_id}],
                }
            }
        }
        data = await self._request("POST", "/bookings/availability/search", json=body)
        return data.get("availabilities", []) or []

    async def create_booking(
            self,
            service_variation_id: str,
            start_at: datetime,
            duration_minutes: int,
            customer_id: Optional[str] = None,
            customer_note: Optional[str] = None,
    ) -> Dict[str, Any]:
        booking: Dict[str, Any] = {
            "location_id": self.location_id,
            "start_at": _iso(start_at),
            "appointment_segments": [
                {
                    "service_variation_id": service_variation_id,
                    "duration_minutes": duration_minutes,
                    "team_member_id": self.team_member_id,
                }
            ],
        }
        if customer_id:
            booking["customer_id"] = customer_id
        if customer_note:
            booking["customer_note"] = customer_note

        data = await self._request(
            "POST", "/bookings",
            json={"idempotency_key": str(uuid.uuid4()), "booking": booking},
        )
        return data.get("booking", {})

    async def get_booking(self, booking_id: str) -> Dict[str, Any]:
        data = await self._request("GET", f"/bookings/{booking_id}")
        return data.get("booking", {})

    async def cancel_booking(self, booking_id: str) -> Dict[str, Any]:
        # Square needs the current version to cancel
        booking = await self.get_booking(booking_id)
        body = {"idempotency_key": str(uuid.uuid4())}
        if booking.get("version") is not None:
            body["booking_version"] = booking["version"]
        data = await self._request("POST", f"/bookings/{booking_id}/cancel", json=body)
        return data.get("booking", {})

    # ------------------------------------------------------------------
    # Catalog
    # ------------------------------------------------------------------

    async def list_catalog_items(self) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        cursor = None
        while True:
            params = {"types": "ITEM"}
            if cursor:
                params["cursor"] = cursor
            data = await self._request("GET", "/catalog/list", params=params)
            items.extend(data.get("objects", []) or [])
            cursor = data.get("cursor")
            if not cursor:
                return items

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    async def search_customer_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        body = {"query": {"filter": {"email_address": {"exact": email}}}}
        data = await self._request("POST", "/customers/search", json=body)
        customers = data.get("customers", []) or []
        return customers[0] if customers else None

    async def create_customer(
            self,
            given_name: str,
            family_name: str,
            email_address: str,
            phone_number: str
    ) -> Dict[str, Any]:
        body = {
            "idempotency_key": str(uuid.uuid4()),
            "given_name": given_name,
            "family_name": family_name,
            "email_address": email_address,
            "phone_number": phone_number,
        }
        data = await self._request("POST", "/customers", json=body)
        customer = data.get("customer")
        if not customer or not customer.get("id"):
            raise SquareAPIError("Failed to create Square customer")
        return customer

    # ------------------------------------------------------------------
    # Payments
    # ------------------------------------------------------------------

    async def create_payment(
            self,
            source_id: str,
            amount_cents: int,
            currency: str = "USD",
            customer_id: Optional[str] = None,
            reference_id: Optional[str] = None,
            note: Optional[str] = None,
    ) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "source_id": source_id,
            "idempotency_key": str(uuid.uuid4()),
            "amount_money": {"amount": amount_cents, "currency": currency},
            "location_id": self.location_id,
        }
        if customer_id:
            body["customer_id"] = customer_id
        if reference_id:
            body["reference_id"] = reference_id
        if note:
            body["note"] = note

        data = await self._request("POST", "/payments", json=body)
        return data.get("payment", {})


def get_square_client() -> SquareClient:
    return SquareClient()
