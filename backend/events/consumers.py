# events/consumers.py
"""
Outbox consumers.

A consumer subscribes to event types and applies them after the emitting
transaction has committed:
- Declares which event types it consumes
- Processes each event in its own atomic block
- Tracks its progress via EventBookmark
- Applies each event at most once (ConsumerAppliedEvent)
"""

from abc import ABC, abstractmethod
from typing import List, Optional
import logging

from django.db import transaction

from accounts.models import Company
from events.models import BusinessEvent, EventBookmark, ConsumerAppliedEvent


logger = logging.getLogger(__name__)


class BaseConsumer(ABC):
    """
    Base class for outbox consumers.

    Subclasses must implement:
    - name: Unique identifier for this consumer
    - consumes: List of event types this consumer handles
    - handle(event): Process a single event
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name for this consumer (used in bookmarks)."""

    @property
    @abstractmethod
    def consumes(self) -> List[str]:
        """List of event types this consumer handles."""

    @abstractmethod
    def handle(self, event: BusinessEvent) -> None:
        """
        Process a single event.

        Raising marks the bookmark in error; see process_pending.
        """

    def process_pending(
        self,
        company: Company,
        limit: int = 1000,
        stop_on_error: bool = True,
    ) -> int:
        """
        Process all pending events for this consumer.

        Args:
            company: The company to process events for
            limit: Maximum events to process in one call
            stop_on_error: If True, stop on first error

        Returns:
            Number of events successfully processed
        """
        bookmark, _ = EventBookmark.objects.get_or_create(
            consumer_name=self.name,
            company=company,
        )

        if bookmark.is_paused:
            logger.info(f"Consumer {self.name} is paused for {company.name}")
            return 0

        events = list(bookmark.get_unprocessed_events(
            event_types=self.consumes,
            limit=limit,
        ))

        processed = 0

        for event in events:
            try:
                with transaction.atomic():
                    applied, created = ConsumerAppliedEvent.objects.get_or_create(
                        company=company,
                        consumer_name=self.name,
                        event=event,
                    )
                    if created:
                        self.handle(event)
                    bookmark.mark_processed(event)
                    processed += 1

            except Exception as e:
                logger.exception(
                    f"Error processing event {event.id} in {self.name}: {e}"
                )
                bookmark.mark_error(str(e))
                self.on_error(event, e)

                if stop_on_error:
                    break

        if processed > 0:
            logger.info(
                f"Consumer {self.name} processed {processed} events for {company.name}"
            )

        return processed

    def on_error(self, event: BusinessEvent, error: Exception) -> None:
        """Hook for custom error handling (alerting, dead letters)."""

    def get_bookmark(self, company: Company) -> Optional[EventBookmark]:
        try:
            return EventBookmark.objects.get(
                consumer_name=self.name,
                company=company,
            )
        except EventBookmark.DoesNotExist:
            return None

    def get_lag(self, company: Company) -> int:
        """Number of events this consumer has not processed yet."""
        bookmark = self.get_bookmark(company)
        if not bookmark:
            return BusinessEvent.objects.filter(
                company=company,
                event_type__in=self.consumes,
            ).count()

        return bookmark.get_unprocessed_events(
            event_types=self.consumes,
            limit=10000,
        ).count()


class ConsumerRegistry:
    """
    Registry of all consumers.

    Usage:
        consumer_registry.register(AccountingBridge())
        for consumer in consumer_registry.all():
            consumer.process_pending(company)
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._consumers = {}
        return cls._instance

    def register(self, consumer: BaseConsumer) -> None:
        self._consumers[consumer.name] = consumer

    def get(self, name: str) -> Optional[BaseConsumer]:
        return self._consumers.get(name)

    def all(self) -> List[BaseConsumer]:
        return list(self._consumers.values())

    def consumers_for(self, event_type: str) -> List[BaseConsumer]:
        return [c for c in self._consumers.values() if event_type in c.consumes]


# Global registry instance
consumer_registry = ConsumerRegistry()


def dispatch_company_events(
    company_id: int,
    consumer_names: Optional[list] = None,
    limit: int = 1000,
) -> dict:
    """
    Run consumers over a company's pending events.

    Returns a per-consumer result dict.
    """
    try:
        company = Company.objects.get(id=company_id)
    except Company.DoesNotExist:
        logger.error(f"Company {company_id} not found")
        return {"error": f"Company {company_id} not found"}

    if consumer_names:
        consumers = [
            consumer_registry.get(name)
            for name in consumer_names
            if consumer_registry.get(name)
        ]
    else:
        consumers = consumer_registry.all()

    results = {}
    total_processed = 0

    for consumer in consumers:
        processed = consumer.process_pending(company, limit=limit)
        results[consumer.name] = {"processed": processed, "status": "success"}
        total_processed += processed

    return {
        "company_id": company_id,
        "total_processed": total_processed,
        "consumers": results,
    }
