"""Commerce app configuration."""

from django.apps import AppConfig


class CommerceConfig(AppConfig):
    """Sales and purchasing documents that feed the ledger."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "commerce"
    verbose_name = "Commerce"
