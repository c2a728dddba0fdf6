"""
Initial migration for events app.

Creates the outbox:
- CompanyEventCounter: per-company stream sequence
- BusinessEvent: immutable event rows
- EventBookmark: consumer progress per company
- ConsumerAppliedEvent: per-consumer applied markers
"""
import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("accounts", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="CompanyEventCounter",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("last_sequence", models.BigIntegerField(default=0)),
                (
                    "company",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="event_counter",
                        to="accounts.company",
                    ),
                ),
            ],
            options={
                "verbose_name": "Company Event Counter",
            },
        ),
        migrations.CreateModel(
            name="BusinessEvent",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "event_type",
                    models.CharField(db_index=True, help_text="Event type name (e.g., 'invoice.created')", max_length=100),
                ),
                (
                    "aggregate_type",
                    models.CharField(db_index=True, help_text="Entity type (e.g., 'Invoice', 'JournalEntry')", max_length=50),
                ),
                ("aggregate_id", models.CharField(db_index=True, max_length=64)),
                (
                    "idempotency_key",
                    models.CharField(
                        db_index=True,
                        editable=False,
                        help_text="Unique idempotency key per company",
                        max_length=255,
                    ),
                ),
                (
                    "sequence",
                    models.PositiveIntegerField(default=0, editable=False, help_text="Auto-incremented per aggregate"),
                ),
                (
                    "company_sequence",
                    models.BigIntegerField(db_index=True, editable=False, help_text="Monotonic event sequence per company"),
                ),
                ("data", models.JSONField(default=dict, help_text="Event data payload")),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("recorded_at", models.DateTimeField(auto_now_add=True, db_index=True)),
                ("occurred_at", models.DateTimeField(db_index=True, default=django.utils.timezone.now)),
                (
                    "caused_by_user",
                    models.ForeignKey(
                        blank=True,
                        help_text="User who triggered this event",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="caused_events",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="events",
                        to="accounts.company",
                    ),
                ),
            ],
            options={
                "ordering": ["company_id", "company_sequence"],
                "indexes": [
                    models.Index(
                        fields=["company", "aggregate_type", "aggregate_id", "sequence"],
                        name="event_aggregate_seq_idx",
                    ),
                    models.Index(fields=["company", "event_type", "occurred_at"], name="event_type_occurred_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "aggregate_type", "aggregate_id", "sequence"),
                        name="uniq_event_company_aggregate_sequence",
                    ),
                    models.UniqueConstraint(
                        fields=("company", "idempotency_key"),
                        name="uniq_event_company_idempotency_key",
                    ),
                    models.UniqueConstraint(
                        fields=("company", "company_sequence"),
                        name="uniq_event_company_sequence",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="EventBookmark",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "consumer_name",
                    models.CharField(help_text="Unique consumer identifier (e.g., 'accounting_bridge')", max_length=100),
                ),
                ("last_processed_at", models.DateTimeField(blank=True, null=True)),
                ("is_paused", models.BooleanField(default=False, help_text="Pause event processing for this consumer")),
                ("error_count", models.PositiveIntegerField(default=0, help_text="Number of consecutive errors")),
                ("last_error", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="event_bookmarks",
                        to="accounts.company",
                    ),
                ),
                (
                    "last_event",
                    models.ForeignKey(
                        blank=True,
                        help_text="Last successfully processed event",
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="+",
                        to="events.businessevent",
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.UniqueConstraint(
                        fields=("consumer_name", "company"),
                        name="uniq_bookmark_consumer_company",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="ConsumerAppliedEvent",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("consumer_name", models.CharField(max_length=100)),
                ("applied_at", models.DateTimeField(auto_now_add=True)),
                (
                    "company",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="applied_consumer_events",
                        to="accounts.company",
                    ),
                ),
                (
                    "event",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="+",
                        to="events.businessevent",
                    ),
                ),
            ],
            options={
                "indexes": [models.Index(fields=["company", "consumer_name"], name="applied_consumer_idx")],
                "constraints": [
                    models.UniqueConstraint(
                        fields=("company", "consumer_name", "event"),
                        name="uniq_consumer_event",
                    ),
                ],
            },
        ),
    ]
