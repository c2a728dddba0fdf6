"""Tenant app configuration."""

from django.apps import AppConfig


class TenantConfig(AppConfig):
    """Tenant context resolution (contextvars, no models)."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "tenant"
    verbose_name = "Tenant Context"
