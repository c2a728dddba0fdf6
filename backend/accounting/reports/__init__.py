# accounting/reports/__init__.py
"""
Read-only report generators.

Each module exposes plain functions taking an explicit ``tenant_id`` and
returning a dataclass from ``accounting.reports.dto``:

    trial_balance      trial_balance
    journal            general_journal, general_ledger
    statements         balance_sheet, income_statement
    cash_flow          cash_flow
    aging              ar_aging, ap_aging
    tax                iva_declaration, rete_fuente_summary, ytd_tax_summary
"""
