# events/__init__.py
"""
Events app - the transactional outbox.

This app provides:
- BusinessEvent: Immutable event records written with the business change
- EventBookmark / ConsumerAppliedEvent: Consumer progress and dedupe
- emit_event: validated, idempotent emission with post-commit dispatch
- BaseConsumer / consumer_registry: subscribers (the accounting bridge)

Usage:
    from events.emitter import emit_event
    from events.types import EventTypes, PaymentReceivedData

    emit_event(
        company=company,
        event_type=EventTypes.PAYMENT_RECEIVED,
        aggregate_type="Payment",
        aggregate_id=payment.id,
        data=PaymentReceivedData(...),
        idempotency_key=f"payment.received:{payment.public_id}",
    )
"""
