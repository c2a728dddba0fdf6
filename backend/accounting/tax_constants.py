# accounting/tax_constants.py
"""
Colombian tax constants shared by the bridge and the tax reports.

Tenant-independent. Amounts are in COP.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP


# ReteFuente on purchases of goods
RETE_FUENTE_RATE = Decimal("0.025")
RETE_FUENTE_MIN_BASE = Decimal("523740")

# Supplier payment terms -> days until due (AP aging)
TERMS_DAYS = {
    "IMMEDIATE": 0,
    "NET_15": 15,
    "NET_30": 30,
    "NET_60": 60,
}
DEFAULT_TERMS_DAYS = 30

MONTH_NAMES = (
    "Enero", "Febrero", "Marzo", "Abril", "Mayo", "Junio",
    "Julio", "Agosto", "Septiembre", "Octubre", "Noviembre", "Diciembre",
)

BIMONTHLY_PERIOD_NAMES = (
    "Enero - Febrero", "Marzo - Abril", "Mayo - Junio",
    "Julio - Agosto", "Septiembre - Octubre", "Noviembre - Diciembre",
)


def terms_days(payment_terms: str) -> int:
    return TERMS_DAYS.get(payment_terms, DEFAULT_TERMS_DAYS)


def rete_fuente_withholding(subtotal: Decimal) -> Decimal:
    """
    Withholding owed on a purchase subtotal, rounded to whole pesos.

    Zero when the subtotal does not exceed the minimum base.
    """
    if subtotal <= RETE_FUENTE_MIN_BASE:
        return Decimal("0")
    return (subtotal * RETE_FUENTE_RATE).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def month_range(year: int, month: int) -> tuple[date, date]:
    start = date(year, month, 1)
    if month == 12:
        end = date(year, 12, 31)
    else:
        end = date.fromordinal(date(year, month + 1, 1).toordinal() - 1)
    return start, end


def bimonthly_range(year: int, period: int) -> tuple[date, date, str]:
    """First day, last day and label of bimonthly IVA period 1..6."""
    start_month = (period - 1) * 2 + 1
    start, _ = month_range(year, start_month)
    _, end = month_range(year, start_month + 1)
    return start, end, f"{BIMONTHLY_PERIOD_NAMES[period - 1]} {year}"
