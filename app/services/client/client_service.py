# app/services/client/client_service.py
"""Client records: local find-or-create by email, and Square customer linkage"""
import logging

from sqlalchemy.orm import Session

from app.models.client import Client
from app.schemas.booking import ClientInfo
from app.services.square.client import SquareClient

logger = logging.getLogger(__name__)


class ClientService:

    @staticmethod
    def find_or_create(db: Session, info: ClientInfo) -> Client:
        """
        Look the client up by email; refresh name and phone if found,
        create otherwise. Flushes but does not commit.
        """
        email = info.email.lower()
        client = db.query(Client).filter(Client.email == email).first()

        if client:
            client.first_name = info.first_name
            client.last_name = info.last_name
            client.phone = info.phone
        else:
            client = Client(
                first_name=info.first_name,
                last_name=info.last_name,
                email=email,
                phone=info.phone,
            )
            db.add(client)

        db.flush()
        return client

    @staticmethod
    async def ensure_square_customer(db: Session, client: Client, square: SquareClient) -> str:
        """Return the client's Square customer id, searching by email before creating"""
        if client.square_customer_id:
            return client.square_customer_id

        existing = await square.search_customer_by_email(client.email)
        if existing and existing.get("id"):
            customer_id = existing["id"]
        else:
            customer = await square.create_customer(
                given_name=client.first_name,
                family_name=client.last_name,
                email_address=client.email,
                phone_number=client.phone,
            )
            customer_id = customer["id"]
            logger.info(f"Created Square customer {customer_id} for client {client.id}")

        client.square_customer_id = customer_id
        db.flush()
        return customer_id
