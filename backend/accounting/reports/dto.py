# accounting/reports/dto.py
"""
Report data structures.

Every report returns one of these dataclasses. ``to_dict()`` gives a
JSON-ready dict (Decimal -> str, date -> ISO string) for an API layer.
"""

from dataclasses import dataclass, field, asdict
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional


ZERO = Decimal("0.00")


def _json_value(value):
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    if isinstance(value, list):
        return [_json_value(v) for v in value]
    if isinstance(value, dict):
        return {k: _json_value(v) for k, v in value.items()}
    return value


@dataclass
class ReportDTO:
    def to_dict(self) -> dict:
        return {key: _json_value(value) for key, value in asdict(self).items()}


# =============================================================================
# Balances
# =============================================================================

@dataclass
class AccountBalance(ReportDTO):
    account_id: Optional[int]
    code: str
    name: str
    type: str
    nature: str
    level: int
    total_debit: Decimal
    total_credit: Decimal
    balance: Decimal


@dataclass
class TrialBalanceReport(ReportDTO):
    as_of_date: date
    accounts: List[AccountBalance]
    total_debit: Decimal
    total_credit: Decimal


# =============================================================================
# Journal and ledger
# =============================================================================

@dataclass
class GeneralJournalLine(ReportDTO):
    account_code: str
    account_name: str
    description: str
    debit: Decimal
    credit: Decimal


@dataclass
class GeneralJournalRow(ReportDTO):
    entry_id: int
    entry_number: str
    date: date
    description: str
    source: str
    lines: List[GeneralJournalLine]
    total_debit: Decimal
    total_credit: Decimal


@dataclass
class GeneralJournalReport(ReportDTO):
    from_date: date
    to_date: date
    entries: List[GeneralJournalRow]
    total_debit: Decimal
    total_credit: Decimal


@dataclass
class LedgerMovement(ReportDTO):
    entry_id: int
    entry_number: str
    date: date
    description: str
    debit: Decimal
    credit: Decimal
    running_balance: Decimal


@dataclass
class LedgerAccountSection(ReportDTO):
    account_id: int
    code: str
    name: str
    type: str
    nature: str
    opening_balance: Decimal
    movements: List[LedgerMovement]
    closing_balance: Decimal


@dataclass
class GeneralLedgerReport(ReportDTO):
    from_date: date
    to_date: date
    accounts: List[LedgerAccountSection]


# =============================================================================
# Financial statements
# =============================================================================

@dataclass
class StatementSection(ReportDTO):
    title: str
    accounts: List[AccountBalance]
    total: Decimal


@dataclass
class BalanceSheetReport(ReportDTO):
    as_of_date: date
    assets: StatementSection
    liabilities: StatementSection
    equity: StatementSection
    net_income: Decimal
    total_assets: Decimal
    total_liabilities_and_equity: Decimal
    is_balanced: bool


@dataclass
class IncomeStatementReport(ReportDTO):
    from_date: date
    to_date: date
    revenue: StatementSection
    cogs: StatementSection
    gross_profit: Decimal
    expenses: StatementSection
    net_income: Decimal


@dataclass
class CashFlowMovement(ReportDTO):
    date: date
    description: str
    entry_number: str
    inflow: Decimal
    outflow: Decimal


@dataclass
class CashFlowReport(ReportDTO):
    from_date: date
    to_date: date
    opening_balance: Decimal = ZERO
    movements: List[CashFlowMovement] = field(default_factory=list)
    total_inflows: Decimal = ZERO
    total_outflows: Decimal = ZERO
    net_change: Decimal = ZERO
    closing_balance: Decimal = ZERO


# =============================================================================
# Aging
# =============================================================================

@dataclass
class AgingTotals(ReportDTO):
    current: Decimal = ZERO
    days_1_to_30: Decimal = ZERO
    days_31_to_60: Decimal = ZERO
    days_61_to_90: Decimal = ZERO
    days_90_plus: Decimal = ZERO
    total_overdue: Decimal = ZERO
    total_balance: Decimal = ZERO

    def add(self, balance: Decimal, days_overdue: int) -> None:
        """Place a balance into its bucket by days overdue."""
        self.total_balance += balance
        if days_overdue <= 0:
            self.current += balance
            return
        if days_overdue <= 30:
            self.days_1_to_30 += balance
        elif days_overdue <= 60:
            self.days_31_to_60 += balance
        elif days_overdue <= 90:
            self.days_61_to_90 += balance
        else:
            self.days_90_plus += balance
        self.total_overdue += balance

    def accumulate(self, other: "AgingTotals") -> None:
        self.current += other.current
        self.days_1_to_30 += other.days_1_to_30
        self.days_31_to_60 += other.days_31_to_60
        self.days_61_to_90 += other.days_61_to_90
        self.days_90_plus += other.days_90_plus
        self.total_overdue += other.total_overdue
        self.total_balance += other.total_balance


@dataclass
class ARAgingRow(AgingTotals):
    customer_id: str = ""
    customer_name: str = ""
    customer_document: str = ""


@dataclass
class APAgingRow(AgingTotals):
    supplier_id: str = ""
    supplier_name: str = ""
    supplier_document: str = ""


@dataclass
class ARAgingReport(ReportDTO):
    as_of_date: date
    rows: List[ARAgingRow]
    totals: AgingTotals


@dataclass
class APAgingReport(ReportDTO):
    as_of_date: date
    rows: List[APAgingRow]
    totals: AgingTotals


# =============================================================================
# Tax reports
# =============================================================================

@dataclass
class IvaRateBreakdown(ReportDTO):
    tax_rate: Decimal
    taxable_base: Decimal = ZERO
    tax_amount: Decimal = ZERO
    invoice_count: int = 0


@dataclass
class IvaExemptSummary(ReportDTO):
    category: str
    taxable_base: Decimal = ZERO
    invoice_count: int = 0


@dataclass
class IvaDeclarationReport(ReportDTO):
    year: int
    bimonthly_period: int
    period_label: str
    from_date: date
    to_date: date
    sales_by_rate: List[IvaRateBreakdown]
    sales_exempt: List[IvaExemptSummary]
    total_sales_base: Decimal
    total_iva_generado: Decimal
    purchases_by_rate: List[IvaRateBreakdown]
    purchases_exempt: List[IvaExemptSummary]
    total_purchases_base: Decimal
    total_iva_descontable: Decimal
    net_iva_payable: Decimal


@dataclass
class ReteFuenteSupplierRow(ReportDTO):
    supplier_id: int
    supplier_name: str
    supplier_nit: str
    withholding_rate: Decimal
    total_base: Decimal = ZERO
    total_withheld: Decimal = ZERO
    purchase_count: int = 0
    certificate_id: Optional[int] = None
    certificate_number: Optional[str] = None


@dataclass
class ReteFuenteSummaryReport(ReportDTO):
    year: int
    month: int
    month_label: str
    from_date: date
    to_date: date
    rows: List[ReteFuenteSupplierRow]
    total_base: Decimal
    total_withheld: Decimal


@dataclass
class YtdTaxSummary(ReportDTO):
    year: int
    iva_generado_ytd: Decimal
    iva_descontable_ytd: Decimal
    net_iva_ytd: Decimal
    rete_fuente_base_ytd: Decimal
    rete_fuente_withheld_ytd: Decimal
