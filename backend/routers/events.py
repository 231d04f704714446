from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.auth import current_active_user
from db.database import (
    get_async_session,
    DinnerEvent as EventModel,
    ConfirmedWine as ConfirmedWineModel,
)
from db.users import User
from schemas.events import ConfirmedWineCreate, ConfirmedWineRead, EventCreate, EventRead, EventUpdate

router = APIRouter()


def _serialize_event(e: EventModel) -> EventRead:
    wines = [
        ConfirmedWineRead(
            id=w.id,
            wine_id=w.wine_id,
            wine_name=w.wine_name,
            producer=w.producer,
            vintage=w.vintage,
            display_name=w.display_name,
            wine_type=w.wine_type,
            course=w.course or "",
            is_from_cellar=bool(w.is_from_cellar),
            quantity=int(w.quantity or 0),
        )
        for w in (e.confirmed_wines or [])
    ]
    return EventRead(
        id=e.id,
        title=e.title,
        event_date=e.event_date,
        guest_count=int(e.guest_count),
        occasion=e.occasion,
        notes=e.notes,
        status=e.status,
        post_dinner_notification_id=e.post_dinner_notification_id,
        completed_at=e.completed_at,
        confirmed_wines=wines,
    )


def _build_confirmed_wines(items: List[ConfirmedWineCreate]) -> List[ConfirmedWineModel]:
    return [ConfirmedWineModel(position=i, **item.model_dump()) for i, item in enumerate(items)]


async def load_event(db: AsyncSession, event_id: UUID) -> Optional[EventModel]:
    res = await db.execute(
        select(EventModel)
        .options(selectinload(EventModel.confirmed_wines))
        .where(EventModel.id == event_id)
        .execution_options(populate_existing=True)
    )
    return res.scalar_one_or_none()


@router.get("/", response_model=List[EventRead])
async def list_events(
    from_date: Optional[datetime] = Query(None),
    to_date: Optional[datetime] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status", pattern="^(planning|confirmed|completed|cancelled)$"),
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(current_active_user),
):
    stmt = select(EventModel).options(selectinload(EventModel.confirmed_wines))
    if from_date:
        stmt = stmt.where(EventModel.event_date >= from_date)
    if to_date:
        stmt = stmt.where(EventModel.event_date <= to_date)
    if status_filter:
        stmt = stmt.where(EventModel.status == status_filter)
    stmt = stmt.order_by(EventModel.event_date.asc())
    res = await db.execute(stmt)
    events = res.scalars().all() or []
    return [_serialize_event(e) for e in events]


@router.get("/{event_id}", response_model=EventRead)
async def get_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(current_active_user),
):
    e = await load_event(db, event_id)
    if not e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return _serialize_event(e)


@router.post("/", response_model=EventRead, status_code=status.HTTP_201_CREATED)
async def create_event(
    payload: EventCreate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(current_active_user),
):
    e = EventModel(
        title=payload.title,
        event_date=payload.event_date,
        guest_count=int(payload.guest_count),
        occasion=payload.occasion,
        notes=payload.notes,
        status=payload.status,
        post_dinner_notification_id=payload.post_dinner_notification_id,
        created_by_user_id=user.id,
        confirmed_wines=_build_confirmed_wines(payload.confirmed_wines),
    )
    db.add(e)
    await db.commit()

    e2 = await load_event(db, e.id)
    return _serialize_event(e2)


@router.patch("/{event_id}", response_model=EventRead)
async def update_event(
    event_id: UUID,
    payload: EventUpdate,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(current_active_user),
):
    e = await load_event(db, event_id)
    if not e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")

    data = payload.model_dump(exclude_unset=True)
    new_status = data.get("status")

    # Checked against the stored status, before anything is applied.
    if e.status == "completed":
        if new_status is not None and new_status != "completed":
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="A completed event cannot be reopened; its bottles were already unloaded",
            )
        if payload.confirmed_wines is not None:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Wines of a completed event cannot be changed",
            )
    elif new_status == "completed":
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Use POST /events/{id}/unload or /events/{id}/complete to complete an event",
        )

    for key in ("title", "event_date", "guest_count", "status"):
        if key in data and data[key] is not None:
            setattr(e, key, data[key])
    for key in ("occasion", "notes", "post_dinner_notification_id"):
        if key in data:
            setattr(e, key, data[key])

    if payload.confirmed_wines is not None:
        # replace confirmed wines
        e.confirmed_wines = _build_confirmed_wines(payload.confirmed_wines)

    e.updated_at = datetime.now(timezone.utc)
    await db.commit()

    e2 = await load_event(db, event_id)
    return _serialize_event(e2)


@router.delete("/{event_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: UUID,
    db: AsyncSession = Depends(get_async_session),
    user: User = Depends(current_active_user),
):
    e = await load_event(db, event_id)
    if not e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    await db.delete(e)
    await db.commit()
    return None
