"""
Cellar reconciliation: matching confirmed wines to bottle records and
deducting what was actually drunk.

Works on any objects exposing the attributes below (ORM rows or plain
objects), and mutates bottle records in place:

- planned wine: id, wine_name, producer, quantity
- bottle record: id, wine_name, producer, quantity, status

There are two matching rules:

- discovery (find_candidates / max_available): exact name, OR same producer
  and the bottle name contains the planned name.
- decrement (apply_consumption): exact name AND same producer when the
  planned wine has one. Bottles found only by the substring rule are shown
  to the user but never deducted.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from core.logging_config import get_child_logger

logger = get_child_logger("reconciliation")

BOTTLE_CONSUMED = "consumed"


def _norm(value: Optional[str]) -> Optional[str]:
    """Comparison key for names and producers.

    Lowercased and stripped of surrounding whitespace, so "Barolo " and
    "barolo" are the same wine. None and blank both mean "not set".
    """
    v = (value or "").strip().lower()
    return v or None


@dataclass(frozen=True)
class Allocation:
    bottle: object
    taken: int


@dataclass(frozen=True)
class ReconciliationResult:
    planned_id: object
    requested: int
    deducted: int
    shortfall: int
    allocations: Tuple[Allocation, ...] = field(default_factory=tuple)

    @property
    def is_satisfied(self) -> bool:
        return self.shortfall == 0


def _producer_ok(bottle, planned_producer: Optional[str]) -> bool:
    if planned_producer is None:
        return True
    return _norm(getattr(bottle, "producer", None)) == planned_producer


def find_candidates(planned, inventory: Iterable) -> List:
    """Every bottle record considered the same wine as ``planned`` (discovery rule)."""
    name = _norm(planned.wine_name)
    producer = _norm(planned.producer)
    if name is None:
        return []

    out = []
    for b in inventory:
        b_name = _norm(b.wine_name)
        if b_name is None:
            continue
        name_exact = b_name == name
        producer_name_fuzzy = _producer_ok(b, producer) and name in b_name
        if name_exact or producer_name_fuzzy:
            out.append(b)
    return out


def max_available(planned, inventory: Iterable) -> int:
    """Upper bound for the consumed quantity of one planned wine.

    Never below the planned quantity, so a lagging inventory cannot block
    the unload.
    """
    total = sum(int(b.quantity or 0) for b in find_candidates(planned, inventory))
    return max(total, int(planned.quantity or 0))


def decrement_candidates(planned, inventory: Iterable) -> List:
    """Bottle records eligible for deduction, smallest quantity first."""
    name = _norm(planned.wine_name)
    producer = _norm(planned.producer)
    if name is None:
        return []

    matching = [
        b for b in inventory
        if _norm(b.wine_name) == name
        and _producer_ok(b, producer)
        and int(b.quantity or 0) > 0
    ]
    # sorted() is stable: ties keep inventory order.
    return sorted(matching, key=lambda b: int(b.quantity))


def apply_consumption(planned, amount: int, inventory: Iterable) -> ReconciliationResult:
    """Deduct ``amount`` bottles of ``planned`` from ``inventory``.

    A shortfall never raises; it is returned so the caller can decide how
    to surface it.
    """
    amount = int(amount)
    if amount < 0:
        raise ValueError(f"amount must be >= 0, got {amount}")
    if amount == 0:
        return ReconciliationResult(planned_id=planned.id, requested=0, deducted=0, shortfall=0)

    remaining = amount
    allocations: List[Allocation] = []

    for bottle in decrement_candidates(planned, inventory):
        if remaining <= 0:
            break
        to_deduct = min(int(bottle.quantity), remaining)
        bottle.quantity = int(bottle.quantity) - to_deduct
        remaining -= to_deduct
        allocations.append(Allocation(bottle=bottle, taken=to_deduct))

        if bottle.quantity == 0:
            bottle.status = BOTTLE_CONSUMED

    if remaining > 0:
        logger.warning(
            "Not enough bottles for %s (%s): requested=%s shortfall=%s",
            planned.wine_name,
            planned.producer or "-",
            amount,
            remaining,
        )

    return ReconciliationResult(
        planned_id=planned.id,
        requested=amount,
        deducted=amount - remaining,
        shortfall=remaining,
        allocations=tuple(allocations),
    )
