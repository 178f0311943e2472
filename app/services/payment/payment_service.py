# app/services/payment/payment_service.py
"""Online payment capture through Square"""
import logging
from typing import Any, Dict, Optional

from app.core.errors import PaymentFailed, UpstreamUnavailable
from app.models.appointment import Appointment
from app.schemas.booking import ServiceInfo
from app.services.square.client import SquareClient

logger = logging.getLogger(__name__)

PAID_STATUSES = {"COMPLETED", "APPROVED"}


class PaymentService:

    @staticmethod
    async def charge(
            square: SquareClient,
            appointment: Appointment,
            service: ServiceInfo,
            payment_token: str,
            customer_id: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Charge the service price against a card token from the web payments form.

        Raises:
            PaymentFailed: the charge was declined, errored, or did not complete
        """
        if service.price_cents is None:
            raise PaymentFailed("This service does not have a fixed price and cannot be paid online")

        try:
            payment = await square.create_payment(
                source_id=payment_token,
                amount_cents=service.price_cents,
                customer_id=customer_id,
                reference_id=str(appointment.id),
                note=f"{service.name} appointment",
            )
        except UpstreamUnavailable as e:
            logger.warning(f"Payment for appointment {appointment.id} failed: {e.message}")
            raise PaymentFailed("Payment could not be processed", details=e.details)

        status = payment.get("status")
        if status not in PAID_STATUSES:
            logger.warning(f"Payment for appointment {appointment.id} ended in status {status}")
            raise PaymentFailed(f"Payment was not completed (status: {status})")

        logger.info(f"Captured payment {payment.get('id')} for appointment {appointment.id}")
        return payment
