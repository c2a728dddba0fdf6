# accounting/__init__.py
"""
Accounting app - Double-entry bookkeeping per company.

This app provides:
- Account: Chart of Accounts (PUC) with hierarchy
- JournalEntry / JournalLine: balanced entries, DRAFT -> POSTED -> VOIDED
- AccountingConfig: account mappings for automatic entries
- balances: the balance engine every report builds on
- reports: trial balance, journal, ledger, statements, cash flow, aging, tax
- bridge: outbox consumer turning business events into POSTED entries

Commands handle all mutations to ensure events are emitted.
"""
