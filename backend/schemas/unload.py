from datetime import datetime
from typing import Dict, List, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, field_validator


Variance = Literal["less", "more", "as_planned"]


class CandidateBottle(BaseModel):
    id: UUID
    wine_name: Optional[str] = None
    producer: Optional[str] = None
    quantity: int
    status: str
    location: Optional[str] = None
    # False when the bottle only matched by producer + partial name; it is shown but never deducted
    deductible: bool


class UnloadLine(BaseModel):
    confirmed_wine_id: UUID
    display_name: str
    course: str
    planned_quantity: int
    consumed_quantity: int
    max_available: int
    variance: Variance
    candidates: List[CandidateBottle]


class UnloadPreview(BaseModel):
    event_id: UUID
    title: str
    event_date: datetime
    status: str
    lines: List[UnloadLine]
    total_to_unload: int


class UnloadRequest(BaseModel):
    # confirmed_wine_id -> bottles actually drunk; missing wines default to the planned quantity
    consumed: Dict[UUID, int] = {}

    @field_validator("consumed")
    @classmethod
    def _non_negative(cls, v: Dict[UUID, int]) -> Dict[UUID, int]:
        for k, q in (v or {}).items():
            if q < 0:
                raise ValueError(f"consumed quantity for {k} must be >= 0")
        return v or {}


class UnloadResultLine(BaseModel):
    confirmed_wine_id: UUID
    requested: int
    deducted: int
    shortfall: int


class UnloadResult(BaseModel):
    event_id: UUID
    status: str
    completed_at: datetime
    total_deducted: int
    total_shortfall: int
    notification_cancel_requested: bool
    movements_count: int
    results: List[UnloadResultLine]
    warnings: List[str]
