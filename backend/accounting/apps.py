# accounting/apps.py
"""Accounting app configuration."""

from django.apps import AppConfig


class AccountingConfig(AppConfig):
    """Configuration for the accounting app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "accounting"
    verbose_name = "Accounting"

    def ready(self):
        """Subscribe the accounting bridge to the outbox."""
        from accounting.bridge import AccountingBridge
        from events.consumers import consumer_registry

        if consumer_registry.get("accounting_bridge") is None:
            consumer_registry.register(AccountingBridge())
