# events/emitter.py
"""
Event emission functions.

All outbox events MUST be emitted through ``emit_event`` to ensure:
1. Payload validation against canonical schemas (events/types.py)
2. Idempotency handling
3. Proper sequencing
4. Post-commit dispatch to subscribed consumers

The event row is written inside the caller's transaction. Consumers only
run after that transaction commits, so a consumer failure can never roll
back the business operation that emitted the event.
"""

from __future__ import annotations

import logging
from typing import Optional, Any, Dict, Union
from datetime import datetime

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from events.models import BusinessEvent
from events.types import validate_event_payload, BaseEventData


logger = logging.getLogger(__name__)


def emit_event(
    *,
    company,
    event_type: str,
    aggregate_type: str,
    aggregate_id: Any,
    data: Union[Dict[str, Any], BaseEventData],
    idempotency_key: str,
    caused_by_user=None,
    occurred_at: Optional[datetime] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> BusinessEvent:
    """
    Emit a business event.

    Returns the created event, or the existing one when the idempotency
    key was already used for this company.

    Example:
        emit_event(
            company=invoice.company,
            event_type=EventTypes.INVOICE_CREATED,
            aggregate_type="Invoice",
            aggregate_id=invoice.id,
            data=InvoiceCreatedData(...),
            idempotency_key=f"invoice.created:{invoice.public_id}",
        )

    Raises:
        InvalidEventPayload: If data doesn't match the event type schema
        ValueError: If idempotency_key is missing
    """
    if not idempotency_key or not str(idempotency_key).strip():
        raise ValueError("idempotency_key is required")

    if isinstance(data, BaseEventData):
        data = data.to_dict()

    if not getattr(settings, "DISABLE_EVENT_VALIDATION", False):
        validate_event_payload(event_type, data)

    if occurred_at is None:
        occurred_at = timezone.now()

    existing = BusinessEvent.objects.filter(company=company, idempotency_key=idempotency_key).first()
    if existing:
        return existing

    # Retry on aggregate sequence collisions; an idempotency collision
    # returns the row the other writer inserted.
    for attempt in range(3):
        try:
            with transaction.atomic():
                event = BusinessEvent.objects.create(
                    company=company,
                    event_type=event_type,
                    aggregate_type=aggregate_type,
                    aggregate_id=str(aggregate_id),
                    data=data,
                    metadata=metadata or {},
                    caused_by_user=caused_by_user,
                    occurred_at=occurred_at,
                    idempotency_key=idempotency_key,
                )
            break
        except IntegrityError:
            existing = BusinessEvent.objects.filter(company=company, idempotency_key=idempotency_key).first()
            if existing:
                return existing
            if attempt == 2:
                raise

    _schedule_dispatch(event)
    return event


def _schedule_dispatch(event: BusinessEvent) -> None:
    from events.consumers import consumer_registry

    if not consumer_registry.consumers_for(event.event_type):
        return

    company_id = event.company_id
    transaction.on_commit(lambda: dispatch_after_commit(company_id), robust=True)


def dispatch_after_commit(company_id: int) -> None:
    """Run consumers in-process (EVENTS_SYNC) or hand off to Celery."""
    if getattr(settings, "EVENTS_SYNC", False):
        from events.consumers import dispatch_company_events

        dispatch_company_events(company_id)
        return

    from events.tasks import process_company_events

    process_company_events.delay(company_id=company_id)


def get_aggregate_events(company, aggregate_type: str, aggregate_id: Any) -> list[BusinessEvent]:
    """Events of one aggregate in per-aggregate sequence order."""
    return list(
        BusinessEvent.objects.filter(
            company=company,
            aggregate_type=aggregate_type,
            aggregate_id=str(aggregate_id),
        ).order_by("sequence")
    )
