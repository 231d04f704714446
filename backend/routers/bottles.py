from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.auth import current_active_user
from db.database import get_async_session, Bottle as BottleModel, Wine as WineModel
from db.users import User
from schemas.cellar import BottleCreate, BottleUpdate

router = APIRouter()


async def _get_bottle_or_404(db: AsyncSession, bottle_id: UUID) -> BottleModel:
    res = await db.execute(
        select(BottleModel)
        .options(selectinload(BottleModel.wine))
        .where(BottleModel.id == bottle_id)
        .execution_options(populate_existing=True)
    )
    bottle = res.scalar_one_or_none()
    if not bottle:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Bottle with id {bottle_id} not found")
    return bottle


@router.get("/", response_model=List[Dict])
async def list_bottles(
    status_filter: Optional[str] = Query(None, alias="status", pattern="^(available|reserved|consumed|gifted)$"),
    q: Optional[str] = Query(None),
    in_stock: bool = Query(False),
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    """
    List cellar bottle records.

    - q matches wine name or producer (case-insensitive substring).
    - in_stock keeps only records with quantity > 0.
    """
    stmt = select(BottleModel).join(WineModel, BottleModel.wine_id == WineModel.id).options(selectinload(BottleModel.wine))
    if status_filter:
        stmt = stmt.where(BottleModel.status == status_filter)
    if in_stock:
        stmt = stmt.where(BottleModel.quantity > 0)
    if q and q.strip():
        like = q.strip().lower()
        stmt = stmt.where(
            or_(
                func.lower(WineModel.name).contains(like, autoescape=True),
                func.lower(WineModel.producer).contains(like, autoescape=True),
            )
        )
    stmt = stmt.order_by(WineModel.name.asc(), BottleModel.quantity.asc())
    res = await db.execute(stmt)
    return [b.to_schema for b in res.scalars().all()]


@router.get("/{bottle_id}", response_model=Dict)
async def get_bottle(
    bottle_id: UUID,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    bottle = await _get_bottle_or_404(db, bottle_id)
    return bottle.to_schema


@router.post("/", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_bottle(
    payload: BottleCreate,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    wine = await db.get(WineModel, payload.wine_id)
    if not wine:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Unknown wine_id {payload.wine_id}")

    data = payload.model_dump()
    # An empty record is consumed from the start.
    if data["quantity"] == 0 and data["status"] == "available":
        data["status"] = "consumed"
    bottle = BottleModel(**data)
    db.add(bottle)
    await db.commit()
    bottle = await _get_bottle_or_404(db, bottle.id)
    return bottle.to_schema


@router.patch("/{bottle_id}", response_model=Dict)
async def update_bottle(
    bottle_id: UUID,
    payload: BottleUpdate,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    bottle = await _get_bottle_or_404(db, bottle_id)

    data = payload.model_dump(exclude_unset=True)
    for key, value in data.items():
        if key in ("quantity", "status") and value is None:
            continue
        setattr(bottle, key, value)

    await db.commit()
    bottle = await _get_bottle_or_404(db, bottle_id)
    return bottle.to_schema


@router.delete("/{bottle_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_bottle(
    bottle_id: UUID,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    bottle = await _get_bottle_or_404(db, bottle_id)
    await db.delete(bottle)
    await db.commit()
    return None
