# tests/test_events.py
"""
Tests for the outbox: emission, payload validation, consumers and tasks.
"""

import pytest
from datetime import date

from events.consumers import BaseConsumer, consumer_registry, dispatch_company_events
from events.emitter import emit_event, get_aggregate_events
from events.models import BusinessEvent, EventBookmark
from events.tasks import check_consumer_health, process_company_events
from events.types import EventTypes, InvalidEventPayload, StockAdjustedData


def _stock_data(movement_id="mov-1", quantity="1"):
    return StockAdjustedData(
        stock_movement_id=movement_id,
        product_sku="SKU-1",
        quantity=quantity,
        cost_price="100",
        date="2026-04-01",
    )


def _emit(company, movement_id="mov-1", **overrides):
    kwargs = {
        "company": company,
        "event_type": EventTypes.STOCK_ADJUSTED,
        "aggregate_type": "StockMovement",
        "aggregate_id": movement_id,
        "data": _stock_data(movement_id),
        "idempotency_key": f"stock.adjusted:{movement_id}",
    }
    kwargs.update(overrides)
    return emit_event(**kwargs)


class RecordingConsumer(BaseConsumer):
    """Collects handled events; fails on the SKUs listed in ``fail_on``."""

    def __init__(self, fail_on=()):
        self.handled = []
        self.fail_on = set(fail_on)

    @property
    def name(self):
        return "recording"

    @property
    def consumes(self):
        return [EventTypes.STOCK_ADJUSTED]

    def handle(self, event):
        if event.aggregate_id in self.fail_on:
            raise RuntimeError(f"cannot handle {event.aggregate_id}")
        self.handled.append(event.aggregate_id)


@pytest.fixture
def recording(monkeypatch):
    consumer = RecordingConsumer()
    monkeypatch.setitem(consumer_registry._consumers, consumer.name, consumer)
    return consumer


# =============================================================================
# Emission
# =============================================================================

@pytest.mark.django_db
class TestEmitEvent:

    def test_event_is_stored(self, company):
        event = _emit(company)

        assert event.event_type == EventTypes.STOCK_ADJUSTED
        assert event.aggregate_id == "mov-1"
        assert event.data["quantity"] == "1"
        assert event.sequence == 1
        assert event.company_sequence == 1

    def test_idempotency_key_returns_existing(self, company):
        first = _emit(company)
        second = _emit(company)

        assert first.pk == second.pk
        assert BusinessEvent.objects.filter(company=company).count() == 1

    def test_idempotency_is_per_company(self, company, second_company):
        _emit(company)
        _emit(second_company)

        assert BusinessEvent.objects.count() == 2

    def test_sequences(self, company):
        _emit(company, "mov-1")
        _emit(company, "mov-2")
        again = _emit(
            company,
            "mov-1",
            idempotency_key="stock.adjusted:mov-1:again",
        )

        assert again.sequence == 2
        assert again.company_sequence == 3
        assert [e.pk for e in get_aggregate_events(company, "StockMovement", "mov-1")][-1] == again.pk

    def test_missing_idempotency_key(self, company):
        with pytest.raises(ValueError):
            _emit(company, idempotency_key="  ")

    def test_invalid_payload_is_rejected(self, company):
        data = _stock_data().to_dict()
        data["quantity"] = "muchos"
        data["color"] = "rojo"

        with pytest.raises(InvalidEventPayload) as exc:
            _emit(company, data=data)

        assert any("quantity" in e for e in exc.value.errors)
        assert any("Unexpected fields" in e for e in exc.value.errors)
        assert not BusinessEvent.objects.exists()

    def test_missing_field_is_rejected(self, company):
        data = _stock_data().to_dict()
        del data["date"]

        with pytest.raises(InvalidEventPayload, match="date"):
            _emit(company, data=data)

    def test_unknown_event_type(self, company):
        with pytest.raises(ValueError, match="No schema registered"):
            _emit(company, event_type="something.happened", data={})

    def test_events_are_immutable(self, company):
        event = _emit(company)

        with pytest.raises(ValueError):
            event.save()
        with pytest.raises(ValueError):
            event.delete()


# =============================================================================
# Consumers
# =============================================================================

@pytest.mark.django_db
class TestConsumers:

    def test_pending_events_are_processed_in_order(self, company, recording):
        _emit(company, "mov-1")
        _emit(company, "mov-2")

        result = dispatch_company_events(company.id, consumer_names=["recording"])

        assert recording.handled == ["mov-1", "mov-2"]
        assert result["consumers"]["recording"]["processed"] == 2
        assert recording.get_lag(company) == 0

    def test_events_are_applied_once(self, company, recording):
        _emit(company, "mov-1")

        dispatch_company_events(company.id, consumer_names=["recording"])
        dispatch_company_events(company.id, consumer_names=["recording"])

        assert recording.handled == ["mov-1"]

    def test_error_stops_and_marks_bookmark(self, company, recording):
        recording.fail_on = {"mov-2"}
        _emit(company, "mov-1")
        _emit(company, "mov-2")
        _emit(company, "mov-3")

        processed = recording.process_pending(company)

        assert processed == 1
        bookmark = EventBookmark.objects.get(company=company, consumer_name="recording")
        assert bookmark.error_count == 1
        assert "mov-2" in bookmark.last_error
        assert recording.get_lag(company) == 2

    def test_paused_consumer_does_nothing(self, company, recording):
        _emit(company, "mov-1")
        EventBookmark.objects.create(company=company, consumer_name="recording", is_paused=True)

        assert recording.process_pending(company) == 0
        assert recording.handled == []

    def test_dispatch_after_commit(self, company, recording, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            _emit(company, "mov-9")

        assert len(callbacks) == 1
        assert recording.handled == ["mov-9"]

    def test_unknown_company(self, db):
        assert "error" in dispatch_company_events(999999)


# =============================================================================
# Tasks
# =============================================================================

@pytest.mark.django_db
class TestTasks:

    def test_process_company_events(self, company, recording):
        _emit(company, "mov-1")

        result = process_company_events(company_id=company.id, consumer_names=["recording"])

        assert result["total_processed"] == 1

    def test_consumer_health_reports_lag(self, company, recording, settings):
        settings.CONSUMER_LAG_THRESHOLD = 2
        _emit(company, "mov-1")
        _emit(company, "mov-2")

        report = check_consumer_health()

        assert report["healthy"] is False
        lagging = report["companies_with_lag"][0]
        assert lagging["company"] == company.slug
        assert {"consumer": "recording", "lag": 2} in lagging["consumers"]
