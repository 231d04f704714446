"""
Tests for completing a dinner event and the consumed-quantity input.
"""

from datetime import datetime, timezone

import pytest

from core.exceptions import ConsumptionOutOfRangeError
from core.finalization import (
    EVENT_COMPLETED,
    VARIANCE_AS_PLANNED,
    VARIANCE_LESS,
    VARIANCE_MORE,
    ConsumptionInput,
    finalize_event,
    variance,
)
from conftest import RecordingCanceller


NOW = datetime(2026, 10, 18, 23, 30, tzinfo=timezone.utc)


class TestConsumptionInput:
    def test_defaults_to_planned_for_cellar_wines_only(self, make_event, make_planned, make_bottle):
        cellar = make_planned("Barolo", quantity=2)
        bought = make_planned("Franciacorta", quantity=3, is_from_cellar=False)
        event = make_event([cellar, bought])

        consumption = ConsumptionInput.for_event(event, [make_bottle("Barolo", quantity=6)])

        assert consumption.as_dict() == {cellar.id: 2}
        assert consumption.maximum(cellar.id) == 6
        assert consumption.total() == 2

    def test_set_within_bounds(self, make_event, make_planned, make_bottle):
        wine = make_planned("Barolo", quantity=2)
        consumption = ConsumptionInput.for_event(make_event([wine]), [make_bottle("Barolo", quantity=4)])

        consumption.set(wine.id, 4)
        assert consumption.get(wine.id) == 4
        assert consumption.variance(wine.id) == VARIANCE_MORE

        consumption.set(wine.id, 0)
        assert consumption.variance(wine.id) == VARIANCE_LESS

    def test_above_maximum_is_rejected(self, make_event, make_planned, make_bottle):
        wine = make_planned("Barolo", quantity=2)
        consumption = ConsumptionInput.for_event(make_event([wine]), [make_bottle("Barolo", quantity=3)])

        with pytest.raises(ConsumptionOutOfRangeError) as exc:
            consumption.set(wine.id, 4)
        assert exc.value.maximum == 3
        assert consumption.get(wine.id) == 2

    def test_negative_is_rejected(self, make_event, make_planned):
        wine = make_planned("Barolo", quantity=2)
        consumption = ConsumptionInput.for_event(make_event([wine]), [])

        with pytest.raises(ConsumptionOutOfRangeError):
            consumption.set(wine.id, -1)

    def test_unknown_or_purchased_wine_is_rejected(self, make_event, make_planned):
        bought = make_planned("Franciacorta", is_from_cellar=False)
        consumption = ConsumptionInput.for_event(make_event([bought]), [])

        with pytest.raises(ConsumptionOutOfRangeError):
            consumption.set(bought.id, 1)

    def test_planned_quantity_allowed_with_empty_cellar(self, make_event, make_planned):
        wine = make_planned("Barolo", quantity=3)
        consumption = ConsumptionInput.for_event(make_event([wine]), [])

        consumption.set(wine.id, 3)
        assert consumption.variance(wine.id) == VARIANCE_AS_PLANNED


def test_variance():
    assert variance(2, 1) == VARIANCE_LESS
    assert variance(2, 2) == VARIANCE_AS_PLANNED
    assert variance(2, 3) == VARIANCE_MORE


class TestFinalizeEvent:
    def test_unloads_cellar_wines_and_completes(self, make_event, make_planned, make_bottle, recording_canceller):
        barolo = make_planned("Barolo", quantity=2)
        bought = make_planned("Franciacorta", quantity=1, is_from_cellar=False)
        inventory = [make_bottle("Barolo", quantity=3), make_bottle("Franciacorta", quantity=5)]
        event = make_event([barolo, bought], notification_id="postDinner-42")

        report = finalize_event(
            event,
            {barolo.id: 2, bought.id: 1},
            inventory,
            recording_canceller,
            now=NOW,
        )

        assert [r.planned_id for r in report.results] == [barolo.id]
        assert report.total_deducted == 2
        assert report.total_shortfall == 0
        assert inventory[0].quantity == 1
        assert inventory[1].quantity == 5
        assert event.status == EVENT_COMPLETED
        assert event.completed_at == NOW
        assert event.updated_at == NOW
        assert report.completed_at == NOW

    def test_cancels_pending_notification(self, make_event, make_planned, recording_canceller):
        event = make_event([make_planned("Barolo")], notification_id="postDinner-42")

        report = finalize_event(event, {}, [], recording_canceller, now=NOW)

        assert recording_canceller.calls == [(event.id, "postDinner-42")]
        assert report.notification_cancel_requested
        assert event.post_dinner_notification_id is None
        assert event.status == EVENT_COMPLETED

    def test_no_notification_nothing_to_cancel(self, make_event, make_planned, recording_canceller):
        event = make_event([make_planned("Barolo")])

        report = finalize_event(event, {}, [], recording_canceller, now=NOW)

        assert recording_canceller.calls == []
        assert not report.notification_cancel_requested

    def test_failing_canceller_does_not_block_completion(self, make_event, make_planned, make_bottle):
        wine = make_planned("Barolo", quantity=1)
        bottle = make_bottle("Barolo", quantity=1)
        event = make_event([wine], notification_id="postDinner-1")

        report = finalize_event(event, {wine.id: 1}, [bottle], RecordingCanceller(fail=True), now=NOW)

        assert event.status == EVENT_COMPLETED
        assert event.post_dinner_notification_id is None
        assert not report.notification_cancel_requested
        assert bottle.quantity == 0

    def test_zero_entries_are_skipped(self, make_event, make_planned, make_bottle, recording_canceller):
        wine = make_planned("Barolo", quantity=2)
        bottle = make_bottle("Barolo", quantity=2)
        event = make_event([wine])

        report = finalize_event(event, {wine.id: 0}, [bottle], recording_canceller, now=NOW)

        assert report.results == []
        assert bottle.quantity == 2

    def test_shortfall_is_reported_not_raised(self, make_event, make_planned, make_bottle, recording_canceller):
        wine = make_planned("Barolo", producer="Conterno", quantity=3)
        bottle = make_bottle("Barolo Conterno 2018", producer="Conterno", quantity=2)
        event = make_event([wine])

        report = finalize_event(event, {wine.id: 3}, [bottle], recording_canceller, now=NOW)

        assert report.total_shortfall == 3
        assert [r.planned_id for r in report.shortfalls] == [wine.id]
        assert bottle.quantity == 2
        assert event.status == EVENT_COMPLETED

    def test_second_call_deducts_again(self, make_event, make_planned, make_bottle, recording_canceller):
        wine = make_planned("Barolo", quantity=1)
        bottle = make_bottle("Barolo", quantity=5)
        event = make_event([wine])

        finalize_event(event, {wine.id: 1}, [bottle], recording_canceller, now=NOW)
        finalize_event(event, {wine.id: 1}, [bottle], recording_canceller, now=NOW)

        assert bottle.quantity == 3
        assert event.status == EVENT_COMPLETED

    def test_accepts_consumption_input(self, make_event, make_planned, make_bottle, recording_canceller):
        wine = make_planned("Barolo", quantity=2)
        inventory = [make_bottle("Barolo", quantity=1), make_bottle("Barolo", quantity=4)]
        event = make_event([wine])
        consumption = ConsumptionInput.for_event(event, inventory)
        consumption.set(wine.id, 3)

        report = finalize_event(event, consumption, inventory, recording_canceller, now=NOW)

        assert report.total_deducted == 3
        assert [b.quantity for b in inventory] == [0, 2]
