from datetime import date
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, field_validator


WineType = Literal["red", "white", "rose", "sparkling", "dessert", "fortified"]
BottleStatus = Literal["available", "reserved", "consumed", "gifted"]


def _strip_nullable(v: Optional[str]) -> Optional[str]:
    if v is None:
        return None
    v = v.strip()
    return v or None


class WineCreate(BaseModel):
    name: str
    producer: Optional[str] = None
    vintage: Optional[str] = None
    wine_type: WineType = "red"
    region: Optional[str] = None
    country: str = "Italia"
    alcohol: Optional[float] = None
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("name is required")
        return v

    @field_validator("producer", "vintage", "region", "description")
    @classmethod
    def _strip_optional(cls, v: Optional[str]) -> Optional[str]:
        return _strip_nullable(v)


class WineUpdate(BaseModel):
    name: Optional[str] = None
    producer: Optional[str] = None
    vintage: Optional[str] = None
    wine_type: Optional[WineType] = None
    region: Optional[str] = None
    country: Optional[str] = None
    alcohol: Optional[float] = None
    description: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _name_not_empty(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("cannot be empty")
        return v


class BottleCreate(BaseModel):
    wine_id: UUID
    quantity: int = 1
    status: BottleStatus = "available"
    location: Optional[str] = None
    purchase_date: Optional[date] = None
    purchase_price: Optional[float] = None
    notes: Optional[str] = None

    @field_validator("quantity")
    @classmethod
    def _quantity_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("quantity must be >= 0")
        return v

    @field_validator("location", "notes")
    @classmethod
    def _strip_optional(cls, v: Optional[str]) -> Optional[str]:
        return _strip_nullable(v)


class BottleUpdate(BaseModel):
    quantity: Optional[int] = None
    status: Optional[BottleStatus] = None
    location: Optional[str] = None
    purchase_date: Optional[date] = None
    purchase_price: Optional[float] = None
    notes: Optional[str] = None

    @field_validator("quantity")
    @classmethod
    def _quantity_non_negative(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v < 0:
            raise ValueError("quantity must be >= 0")
        return v
