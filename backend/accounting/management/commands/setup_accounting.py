# accounting/management/commands/setup_accounting.py
"""
Seed the PUC chart of accounts for a company.

Usage:
    python manage.py setup_accounting --company 1
    python manage.py setup_accounting --company 1 --enable-auto-entries
"""

from django.core.management.base import BaseCommand, CommandError

from accounting.chart import PUC_ACCOUNTS, setup_chart_of_accounts
from accounting.exceptions import AccountingError
from accounting.write_barrier import bootstrap_writes_allowed


class Command(BaseCommand):
    help = "Create the PUC chart of accounts and default accounting config for a company"

    def add_arguments(self, parser):
        parser.add_argument(
            "--company",
            type=int,
            required=True,
            help="Company id",
        )
        parser.add_argument(
            "--enable-auto-entries",
            action="store_true",
            help="Turn on automatic journal entries from business events",
        )

    def handle(self, *args, **options):
        company_id = options["company"]
        try:
            config = setup_chart_of_accounts(company_id)
        except AccountingError as exc:
            raise CommandError(str(exc))

        if options["enable_auto_entries"]:
            config.auto_generate_entries = True
            with bootstrap_writes_allowed():
                config.save(update_fields=["auto_generate_entries", "updated_at"])

        self.stdout.write(self.style.SUCCESS(
            f"Done! Created {len(PUC_ACCOUNTS)} accounts for company {company_id} "
            f"(auto entries {'on' if config.auto_generate_entries else 'off'})."
        ))
