import uuid
from sqlalchemy import Column, DateTime, Numeric, String, Text, Uuid
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class Wine(Base):
    """Wine model - catalog entry shared by every bottle record of the same wine"""
    __tablename__ = "wines"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False, index=True)
    producer = Column(String, nullable=True, index=True)
    vintage = Column(String, nullable=True)
    wine_type = Column(Text, nullable=False, default="red")  # red|white|rose|sparkling|dessert|fortified
    region = Column(String, nullable=True)
    country = Column(String, nullable=False, default="Italia")
    alcohol = Column(Numeric(4, 1), nullable=True)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    bottles = relationship("Bottle", back_populates="wine", cascade="all, delete-orphan")

    @property
    def to_schema(self):
        """Convert Wine model to schema dictionary format"""
        return {
            "id": self.id,
            "name": self.name,
            "producer": self.producer,
            "vintage": self.vintage,
            "wine_type": self.wine_type,
            "region": self.region,
            "country": self.country,
            "alcohol": float(self.alcohol) if self.alcohol is not None else None,
            "description": self.description,
        }
