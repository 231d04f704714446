"""
Post-dinner bottle unloading ("scarico bottiglie").

GET shows, for every cellar wine of the event, the planned quantity, the
bottle records that look like the same wine and how far the consumed
quantity may be raised. POST deducts the confirmed quantities from the
cellar and completes the event in a single transaction.
"""

import asyncio
from typing import Dict, List
from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.auth import current_active_user
from core.exceptions import ConsumptionOutOfRangeError
from core.finalization import (
    EVENT_COMPLETED,
    ConsumptionInput,
    FinalizationReport,
    cellar_wines,
    finalize_event,
)
from core.logging_config import get_child_logger
from core.notifications import DeferredNotificationCanceller, NotificationCanceller, build_notification_canceller
from core.reconciliation import decrement_candidates, find_candidates
from db.database import (
    get_async_session,
    Bottle as BottleModel,
    CellarMovement as CellarMovementModel,
    DinnerEvent as EventModel,
    Wine as WineModel,
)
from db.users import User
from routers.events import load_event
from schemas.unload import (
    CandidateBottle,
    UnloadLine,
    UnloadPreview,
    UnloadRequest,
    UnloadResult,
    UnloadResultLine,
)

router = APIRouter()
logger = get_child_logger("unload")

# One unload at a time per process; rows are also locked FOR UPDATE where the database supports it.
_inventory_lock = asyncio.Lock()


def get_notification_canceller() -> NotificationCanceller:
    return build_notification_canceller()


def _unload_reason(ev: EventModel) -> str:
    return f"Dinner unload: {ev.title} ({ev.id})"


async def _get_event_or_404(db: AsyncSession, event_id: UUID) -> EventModel:
    ev = await load_event(db, event_id)
    if not ev:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Event not found")
    return ev


async def _load_cellar_inventory(db: AsyncSession, ev: EventModel, for_update: bool = False) -> List[BottleModel]:
    """Every bottle record that belongs to a wine.

    Names are not filtered in SQL: the database lower() may fold fewer
    characters than str.lower() (SQLite only folds ASCII), so matching runs
    entirely in Python.
    """
    if not cellar_wines(ev):
        return []

    stmt = (
        select(BottleModel)
        .join(WineModel, BottleModel.wine_id == WineModel.id)
        .options(selectinload(BottleModel.wine))
        .order_by(BottleModel.created_at.asc())
    )
    if for_update:
        stmt = stmt.with_for_update(of=BottleModel)
    res = await db.execute(stmt)
    return list(res.scalars().all())


def _candidate(b: BottleModel, deductible_ids: set) -> CandidateBottle:
    return CandidateBottle(
        id=b.id,
        wine_name=b.wine_name,
        producer=b.producer,
        quantity=int(b.quantity or 0),
        status=b.status,
        location=b.location,
        deductible=b.id in deductible_ids,
    )


def _record_movements(db: AsyncSession, ev: EventModel, report: FinalizationReport, user: User) -> int:
    reason = _unload_reason(ev)
    count = 0
    for r in report.results:
        for a in r.allocations:
            db.add(
                CellarMovementModel(
                    bottle_id=a.bottle.id,
                    change=-int(a.taken),
                    reason=reason,
                    source_type="event_unload",
                    source_event_id=ev.id,
                    source_wine_id=r.planned_id,
                    created_by_user_id=user.id,
                )
            )
            count += 1
    return count


def _serialize_report(ev: EventModel, report: FinalizationReport, movements_count: int) -> UnloadResult:
    names = {w.id: w.display_name for w in ev.confirmed_wines or []}
    warnings = [
        f"Not enough bottles in the cellar for {names.get(r.planned_id, r.planned_id)}: "
        f"{r.shortfall} of {r.requested} not deducted"
        for r in report.shortfalls
    ]
    return UnloadResult(
        event_id=ev.id,
        status=ev.status,
        completed_at=report.completed_at,
        total_deducted=report.total_deducted,
        total_shortfall=report.total_shortfall,
        notification_cancel_requested=report.notification_cancel_requested,
        movements_count=movements_count,
        results=[
            UnloadResultLine(
                confirmed_wine_id=r.planned_id,
                requested=r.requested,
                deducted=r.deducted,
                shortfall=r.shortfall,
            )
            for r in report.results
        ],
        warnings=warnings,
    )


@router.get("/{event_id}/unload", response_model=UnloadPreview)
async def unload_preview(
    event_id: UUID,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    ev = await _get_event_or_404(db, event_id)
    inventory = await _load_cellar_inventory(db, ev)
    consumption = ConsumptionInput.for_event(ev, inventory)

    lines = []
    for w in cellar_wines(ev):
        deductible_ids = {b.id for b in decrement_candidates(w, inventory)}
        lines.append(
            UnloadLine(
                confirmed_wine_id=w.id,
                display_name=w.display_name,
                course=w.course or "",
                planned_quantity=int(w.quantity or 0),
                consumed_quantity=consumption.get(w.id),
                max_available=consumption.maximum(w.id),
                variance=consumption.variance(w.id),
                candidates=[_candidate(b, deductible_ids) for b in find_candidates(w, inventory)],
            )
        )

    return UnloadPreview(
        event_id=ev.id,
        title=ev.title,
        event_date=ev.event_date,
        status=ev.status,
        lines=lines,
        total_to_unload=consumption.total(),
    )


@router.post("/{event_id}/unload", response_model=UnloadResult)
async def confirm_unload(
    event_id: UUID,
    payload: UnloadRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
    notifier: NotificationCanceller = Depends(get_notification_canceller),
):
    """
    Deduct the consumed cellar bottles and complete the event.

    Wines missing from ``consumed`` are unloaded at their planned quantity.
    Shortfalls do not fail the request; they come back as warnings.
    """
    async with _inventory_lock:
        try:
            ev = await _get_event_or_404(db, event_id)
            # Unloading twice would deduct twice.
            if ev.status == EVENT_COMPLETED:
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Event already completed. Bottles were already unloaded.",
                )

            inventory = await _load_cellar_inventory(db, ev, for_update=True)
            consumption = ConsumptionInput.for_event(ev, inventory)
            try:
                consumption.update(payload.consumed)
            except ConsumptionOutOfRangeError as e:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

            report = finalize_event(
                ev,
                consumption,
                inventory,
                DeferredNotificationCanceller(background_tasks, notifier),
            )
            movements_count = _record_movements(db, ev, report, user)
            await db.commit()

        except HTTPException:
            await db.rollback()
            raise
        except Exception as e:
            await db.rollback()
            logger.exception("Unload failed for event %s", event_id)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to unload bottles: {e}",
            )

    for r in report.shortfalls:
        logger.warning("Event %s: shortfall of %s for confirmed wine %s", ev.id, r.shortfall, r.planned_id)
    return _serialize_report(ev, report, movements_count)


@router.post("/{event_id}/complete", response_model=UnloadResult)
async def complete_without_unload(
    event_id: UUID,
    background_tasks: BackgroundTasks,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
    notifier: NotificationCanceller = Depends(get_notification_canceller),
):
    """Complete an event whose wines were all bought for the occasion; the cellar is untouched.

    Events with cellar wines must go through the unload instead.
    """
    async with _inventory_lock:
        try:
            ev = await _get_event_or_404(db, event_id)
            if ev.status == EVENT_COMPLETED:
                raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Event already completed")
            if cellar_wines(ev):
                raise HTTPException(
                    status_code=status.HTTP_409_CONFLICT,
                    detail="Event has wines from the cellar; unload them with POST /events/{id}/unload",
                )

            report = finalize_event(ev, {}, [], DeferredNotificationCanceller(background_tasks, notifier))
            await db.commit()
        except HTTPException:
            await db.rollback()
            raise
        except Exception as e:
            await db.rollback()
            logger.exception("Completing event %s failed", event_id)
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail=f"Failed to complete event: {e}",
            )
    return _serialize_report(ev, report, 0)


@router.get("/{event_id}/movements", response_model=List[Dict])
async def list_event_movements(
    event_id: UUID,
    user: User = Depends(current_active_user),
    db: AsyncSession = Depends(get_async_session),
):
    """Cellar movements written when the event was unloaded"""
    res = await db.execute(
        select(CellarMovementModel)
        .where(CellarMovementModel.source_event_id == event_id)
        .order_by(CellarMovementModel.created_at.asc())
    )
    return [
        {
            "id": mv.id,
            "bottle_id": mv.bottle_id,
            "change": int(mv.change),
            "reason": mv.reason,
            "source_type": mv.source_type,
            "source_event_id": mv.source_event_id,
            "source_wine_id": mv.source_wine_id,
            "created_at": mv.created_at,
            "created_by_user_id": mv.created_by_user_id,
        }
        for mv in res.scalars().all()
    ]
