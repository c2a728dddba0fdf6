"""
Celery tasks for outbox processing.

Tasks:
- process_company_events: Run consumers for one company
- process_all_events: Periodic sweep over all active companies
- check_consumer_health: Report consumer lag for alerting

Usage:
    from events.tasks import process_company_events
    process_company_events.delay(company_id=company.id)
"""
import logging
from typing import Optional

from celery import shared_task
from django.conf import settings

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    autoretry_for=(Exception,),
    retry_backoff=True,
)
def process_company_events(
    self,
    company_id: int,
    consumer_names: Optional[list] = None,
    limit: int = 1000,
) -> dict:
    """
    Process all pending outbox events for a company.

    Args:
        company_id: ID of the company to process
        consumer_names: Optional list of specific consumers to run
        limit: Maximum events per consumer

    Returns:
        Dict with processing results per consumer
    """
    from events.consumers import dispatch_company_events

    logger.info(f"Processing outbox events for company {company_id}")

    result = dispatch_company_events(
        company_id,
        consumer_names=consumer_names,
        limit=limit,
    )

    if "error" not in result:
        logger.info(
            f"Completed outbox events for company {company_id}: "
            f"{result['total_processed']} events processed"
        )
    return result


@shared_task(bind=True)
def process_all_events(self, limit: int = 1000) -> dict:
    """
    Run consumers for all active companies.

    Scheduled periodically to pick up events whose on-commit dispatch was
    lost (worker restart, broker outage).
    """
    from accounts.models import Company

    logger.info("Processing outbox events for all companies")

    results = {}
    total_processed = 0
    companies = list(Company.objects.filter(is_active=True))

    for company in companies:
        try:
            result = process_company_events(company_id=company.id, limit=limit)
            results[company.slug] = result
            total_processed += result.get("total_processed", 0)
        except Exception as e:
            logger.exception(f"Error processing company {company.slug}: {e}")
            results[company.slug] = {"error": str(e)}

    logger.info(f"Completed outbox sweep: {total_processed} total events processed")

    return {
        "companies_processed": len(companies),
        "total_events_processed": total_processed,
        "results": results,
    }


@shared_task(bind=True)
def check_consumer_health(self) -> dict:
    """
    Report lag across all consumers for alerting purposes.
    """
    from accounts.models import Company
    from events.consumers import consumer_registry

    threshold = getattr(settings, "CONSUMER_LAG_THRESHOLD", 1000)

    report = {
        "healthy": True,
        "total_lag": 0,
        "companies_with_lag": [],
        "threshold": threshold,
    }

    for company in Company.objects.filter(is_active=True):
        company_lag = 0
        lagging_consumers = []

        for consumer in consumer_registry.all():
            lag = consumer.get_lag(company)
            company_lag += lag
            if lag > 0:
                lagging_consumers.append({
                    "consumer": consumer.name,
                    "lag": lag,
                })

        if company_lag > 0:
            report["companies_with_lag"].append({
                "company": company.slug,
                "total_lag": company_lag,
                "consumers": lagging_consumers,
            })

        report["total_lag"] += company_lag

    if report["total_lag"] >= threshold:
        report["healthy"] = False
        logger.warning(
            f"Consumer lag threshold exceeded: {report['total_lag']} >= {threshold}"
        )

    return report
