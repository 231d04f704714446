from datetime import datetime
from typing import List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, field_validator


DinnerStatus = Literal["planning", "confirmed", "completed", "cancelled"]


class ConfirmedWineCreate(BaseModel):
    wine_id: Optional[UUID] = None
    wine_name: str
    producer: Optional[str] = None
    vintage: Optional[str] = None
    wine_type: str = "red"
    course: str = ""
    is_from_cellar: bool = True
    quantity: int = 1

    @field_validator("wine_name")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("wine_name is required")
        return v

    @field_validator("producer", "vintage")
    @classmethod
    def _strip_nullable(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None

    @field_validator("quantity")
    @classmethod
    def _quantity_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("quantity must be >= 0")
        return v


class ConfirmedWineRead(BaseModel):
    id: UUID
    wine_id: Optional[UUID] = None
    wine_name: str
    producer: Optional[str] = None
    vintage: Optional[str] = None
    display_name: str
    wine_type: str
    course: str
    is_from_cellar: bool
    quantity: int


class EventRead(BaseModel):
    id: UUID
    title: str
    event_date: datetime
    guest_count: int
    occasion: Optional[str] = None
    notes: Optional[str] = None
    status: DinnerStatus
    post_dinner_notification_id: Optional[str] = None
    completed_at: Optional[datetime] = None
    confirmed_wines: List[ConfirmedWineRead]


class EventCreate(BaseModel):
    title: str
    event_date: datetime
    guest_count: int = 2
    occasion: Optional[str] = None
    notes: Optional[str] = None
    status: DinnerStatus = "planning"
    post_dinner_notification_id: Optional[str] = None
    confirmed_wines: List[ConfirmedWineCreate] = []

    @field_validator("title")
    @classmethod
    def _strip_title(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("title is required")
        return v

    @field_validator("guest_count")
    @classmethod
    def _guests_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("guest_count must be >= 1")
        return v


class EventUpdate(BaseModel):
    title: Optional[str] = None
    event_date: Optional[datetime] = None
    guest_count: Optional[int] = None
    occasion: Optional[str] = None
    notes: Optional[str] = None
    status: Optional[DinnerStatus] = None
    post_dinner_notification_id: Optional[str] = None
    confirmed_wines: Optional[List[ConfirmedWineCreate]] = None
