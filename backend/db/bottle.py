import uuid
from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, Numeric, String, Text, Uuid
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class Bottle(Base):
    """Bottle record - how many bottles of a wine sit in the cellar, and where"""
    __tablename__ = "bottles"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    wine_id = Column(Uuid(as_uuid=True), ForeignKey("wines.id", ondelete="CASCADE"), nullable=True, index=True)

    quantity = Column(Integer, nullable=False, default=1)
    status = Column(Text, nullable=False, default="available", index=True)  # available|reserved|consumed|gifted

    location = Column(String, nullable=True)  # free text: "scaffale 3", "ripiano alto"
    purchase_date = Column(Date, nullable=True)
    purchase_price = Column(Numeric(10, 2), nullable=True)
    notes = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    wine = relationship("Wine", back_populates="bottles")

    # Matching reads names through the wine; a bottle without a wine matches nothing.
    @property
    def wine_name(self):
        return self.wine.name if self.wine is not None else None

    @property
    def producer(self):
        return self.wine.producer if self.wine is not None else None

    @property
    def to_schema(self):
        """Convert Bottle model to schema dictionary format (wine must be loaded)"""
        return {
            "id": self.id,
            "wine_id": self.wine_id,
            "wine_name": self.wine_name,
            "producer": self.producer,
            "vintage": self.wine.vintage if self.wine is not None else None,
            "quantity": int(self.quantity or 0),
            "status": self.status,
            "location": self.location,
            "purchase_date": self.purchase_date,
            "purchase_price": float(self.purchase_price) if self.purchase_price is not None else None,
            "notes": self.notes,
        }
