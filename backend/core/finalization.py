"""
Completing a dinner event: unload the consumed cellar bottles, mark the
event completed and drop its post-dinner reminder.

finalize_event is NOT idempotent for inventory. Calling it twice for the
same event deducts twice; callers check the event status first.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Mapping, Optional

from core.exceptions import ConsumptionOutOfRangeError
from core.logging_config import get_child_logger
from core.notifications import NotificationCanceller
from core.reconciliation import ReconciliationResult, apply_consumption, max_available

logger = get_child_logger("finalization")

EVENT_COMPLETED = "completed"

VARIANCE_LESS = "less"
VARIANCE_MORE = "more"
VARIANCE_AS_PLANNED = "as_planned"


def cellar_wines(event) -> List:
    return [w for w in (event.confirmed_wines or []) if w.is_from_cellar]


def variance(planned_quantity: int, consumed: int) -> str:
    if consumed < planned_quantity:
        return VARIANCE_LESS
    if consumed > planned_quantity:
        return VARIANCE_MORE
    return VARIANCE_AS_PLANNED


class ConsumptionInput:
    """Consumed quantities the operator confirms, keyed by confirmed wine id.

    Starts at the planned quantity of each cellar wine; each entry can be
    moved between 0 and the wine's max_available.
    """

    def __init__(self, planned: Dict, maximums: Dict):
        self._planned = dict(planned)
        self._maximums = dict(maximums)
        self._values = dict(planned)

    @classmethod
    def for_event(cls, event, inventory: Iterable) -> "ConsumptionInput":
        inventory = list(inventory)
        wines = cellar_wines(event)
        return cls(
            planned={w.id: int(w.quantity or 0) for w in wines},
            maximums={w.id: max_available(w, inventory) for w in wines},
        )

    def set(self, planned_id, quantity: int) -> None:
        if planned_id not in self._planned:
            raise ConsumptionOutOfRangeError(
                f"Unknown cellar wine {planned_id}", planned_id=planned_id, quantity=quantity
            )
        quantity = int(quantity)
        maximum = self._maximums[planned_id]
        if quantity < 0 or quantity > maximum:
            raise ConsumptionOutOfRangeError(
                f"Consumed quantity for {planned_id} must be between 0 and {maximum}, got {quantity}",
                planned_id=planned_id,
                quantity=quantity,
                maximum=maximum,
            )
        self._values[planned_id] = quantity

    def update(self, values: Mapping) -> None:
        for planned_id, quantity in values.items():
            self.set(planned_id, quantity)

    def get(self, planned_id, default: int = 0) -> int:
        return self._values.get(planned_id, default)

    def maximum(self, planned_id) -> int:
        return self._maximums[planned_id]

    def variance(self, planned_id) -> str:
        return variance(self._planned[planned_id], self._values[planned_id])

    def total(self) -> int:
        return sum(self._values.values())

    def as_dict(self) -> Dict:
        return dict(self._values)


@dataclass
class FinalizationReport:
    event_id: object
    completed_at: datetime
    results: List[ReconciliationResult] = field(default_factory=list)
    # True once notifier.cancel() returned; a deferred notifier has only queued it.
    notification_cancel_requested: bool = False

    @property
    def total_deducted(self) -> int:
        return sum(r.deducted for r in self.results)

    @property
    def total_shortfall(self) -> int:
        return sum(r.shortfall for r in self.results)

    @property
    def shortfalls(self) -> List[ReconciliationResult]:
        return [r for r in self.results if r.shortfall > 0]


def finalize_event(
    event,
    consumption: Mapping,
    inventory: Iterable,
    notifier: NotificationCanceller,
    now: Optional[datetime] = None,
) -> FinalizationReport:
    """Unload every cellar wine with a non-zero consumed quantity, then complete the event.

    ``consumption`` is a ConsumptionInput or any mapping of confirmed wine id
    to quantity. Bottle records in ``inventory`` are mutated in place; the
    caller owns them exclusively for the duration of the call.
    """
    inventory = list(inventory)
    now = now or datetime.now(timezone.utc)
    report = FinalizationReport(event_id=event.id, completed_at=now)

    for wine in cellar_wines(event):
        consumed = int(consumption.get(wine.id, 0) or 0)
        if consumed <= 0:
            continue
        report.results.append(apply_consumption(wine, consumed, inventory))

    event.status = EVENT_COMPLETED
    event.updated_at = now
    event.completed_at = now

    notification_id = event.post_dinner_notification_id
    if notification_id:
        try:
            notifier.cancel(event.id, notification_id)
            report.notification_cancel_requested = True
        except Exception as e:
            # Reminder cleanup never blocks completion.
            logger.warning("Failed to cancel notification %s for event %s: %r", notification_id, event.id, e)
        event.post_dinner_notification_id = None

    logger.info(
        "Event %s completed: deducted=%s shortfall=%s wines=%s",
        event.id,
        report.total_deducted,
        report.total_shortfall,
        len(report.results),
    )
    return report
