import uuid

from sqlalchemy import Column, DateTime, ForeignKey, Integer, Text, Uuid
from sqlalchemy.orm import relationship

from .base import Base, utcnow


class CellarMovement(Base):
    """Append-only record of every quantity change applied by an unload"""
    __tablename__ = "cellar_movements"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)

    bottle_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("bottles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    change = Column(Integer, nullable=False)
    reason = Column(Text, nullable=True)
    source_type = Column(Text, nullable=True)  # 'event_unload'
    source_event_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    source_wine_id = Column(Uuid(as_uuid=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    created_by_user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    bottle = relationship("Bottle")
