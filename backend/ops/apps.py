"""Ops app configuration."""

from django.apps import AppConfig


class OpsConfig(AppConfig):
    """Operations & observability (structured logging)."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "ops"
    verbose_name = "Operations"
