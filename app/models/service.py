# app/models/service.py
"""
Service Model - bookable services offered by the practitioner.
In square mode the catalog is read from Square and this table is the fallback.
"""
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func
import uuid
from app.models.base import Base


class Service(Base):
    __tablename__ = "services"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)

    duration_minutes = Column(Integer, nullable=False)

    # Pricing in smallest currency unit (nullable - some services vary)
    price_cents = Column(Integer, nullable=True)
    price_display = Column(String(50), nullable=True)  # e.g. "$80", "Price Varies"

    is_active = Column(Boolean, default=True, index=True)
    sort_order = Column(Integer, default=0)

    # Square catalog linkage (square mode only)
    square_catalog_id = Column(String(64), nullable=True)
    square_variation_id = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now()
    )

    def __repr__(self):
        return f"<Service(id={self.id}, name={self.name}, duration={self.duration_minutes})>"

    def to_dict(self):
        """Convert to dictionary for API responses"""
        return {
            "id": str(self.id),
            "name": self.name,
            "description": self.description,
            "duration_minutes": self.duration_minutes,
            "price_cents": self.price_cents,
            "price_display": self.formatted_price,
            "is_active": self.is_active,
            "sort_order": self.sort_order,
            "square_catalog_id": self.square_catalog_id,
            "square_variation_id": self.square_variation_id,
        }

    @property
    def formatted_price(self) -> str:
        """Return human-readable price string"""
        if self.price_display:
            return self.price_display
        elif self.price_cents is not None:
            return f"${self.price_cents / 100:.0f}"
        else:
            return "Price Varies"
