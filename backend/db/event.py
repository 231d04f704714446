import uuid
from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class DinnerEvent(Base):
    __tablename__ = "dinner_events"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    title = Column(String, nullable=False)
    event_date = Column(DateTime(timezone=True), nullable=False, index=True)
    guest_count = Column(Integer, nullable=False, default=2)
    occasion = Column(String, nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(Text, nullable=False, default="planning", index=True)  # planning|confirmed|completed|cancelled

    # Reminder asking the host to unload bottles after dinner
    post_dinner_notification_id = Column(String, nullable=True)

    created_by_user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    confirmed_wines = relationship(
        "ConfirmedWine",
        back_populates="event",
        cascade="all, delete-orphan",
        order_by="ConfirmedWine.position",
    )


class ConfirmedWine(Base):
    """A wine chosen for a dinner, with the number of bottles planned ("previste")"""
    __tablename__ = "event_confirmed_wines"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    event_id = Column(Uuid(as_uuid=True), ForeignKey("dinner_events.id", ondelete="CASCADE"), nullable=False, index=True)
    # Catalog wine when picked from the cellar; purchase suggestions have none
    wine_id = Column(Uuid(as_uuid=True), ForeignKey("wines.id", ondelete="SET NULL"), nullable=True)

    wine_name = Column(String, nullable=False)
    producer = Column(String, nullable=True)
    vintage = Column(String, nullable=True)
    wine_type = Column(Text, nullable=False, default="red")
    course = Column(String, nullable=False, default="")
    is_from_cellar = Column(Boolean, nullable=False, default=True)
    quantity = Column(Integer, nullable=False, default=1)
    position = Column(Integer, nullable=False, default=0)

    event = relationship("DinnerEvent", back_populates="confirmed_wines")

    @property
    def display_name(self) -> str:
        return " ".join(p for p in (self.producer, self.wine_name, self.vintage) if p)
