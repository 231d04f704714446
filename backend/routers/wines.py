from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.auth import current_active_user
from db.database import get_async_session, Wine as WineModel
from db.users import User
from schemas.cellar import WineCreate, WineUpdate

router = APIRouter()


@router.get("/", response_model=List[Dict])
async def list_wines(
    q: Optional[str] = Query(None),
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    """List catalog wines, optionally filtered by name/producer substring"""
    stmt = select(WineModel)
    if q and q.strip():
        like = q.strip().lower()
        stmt = stmt.where(
            or_(
                func.lower(WineModel.name).contains(like, autoescape=True),
                func.lower(WineModel.producer).contains(like, autoescape=True),
            )
        )
    stmt = stmt.order_by(WineModel.name.asc())
    res = await db.execute(stmt)
    return [w.to_schema for w in res.scalars().all()]


@router.get("/{wine_id}", response_model=Dict)
async def get_wine(
    wine_id: UUID,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    wine = await db.get(WineModel, wine_id)
    if not wine:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Wine with id {wine_id} not found")
    return wine.to_schema


@router.post("/", response_model=Dict, status_code=status.HTTP_201_CREATED)
async def create_wine(
    payload: WineCreate,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Create a wine; an existing wine with the same name, producer and vintage is returned instead"""
    stmt = select(WineModel).where(func.lower(WineModel.name) == payload.name.lower())
    if payload.producer:
        stmt = stmt.where(func.lower(WineModel.producer) == payload.producer.lower())
    else:
        stmt = stmt.where(WineModel.producer.is_(None))
    if payload.vintage:
        stmt = stmt.where(WineModel.vintage == payload.vintage)
    else:
        stmt = stmt.where(WineModel.vintage.is_(None))
    existing = (await db.execute(stmt)).scalars().first()
    if existing:
        return existing.to_schema

    wine = WineModel(**payload.model_dump())
    db.add(wine)
    await db.commit()
    await db.refresh(wine)
    return wine.to_schema


@router.patch("/{wine_id}", response_model=Dict)
async def update_wine(
    wine_id: UUID,
    payload: WineUpdate,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    wine = await db.get(WineModel, wine_id)
    if not wine:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Wine with id {wine_id} not found")

    data = payload.model_dump(exclude_unset=True)
    for key, value in data.items():
        if key in ("name", "wine_type", "country") and value is None:
            continue
        setattr(wine, key, value)

    await db.commit()
    await db.refresh(wine)
    return wine.to_schema
