# accounting/reports/trial_balance.py
import logging
from datetime import date

from accounting.balances import ZERO, calculate_balances
from accounting.reports.dto import TrialBalanceReport
from tenant.context import require_tenant_id


logger = logging.getLogger(__name__)


def trial_balance(tenant_id: int | None, as_of_date: date) -> TrialBalanceReport:
    """
    Balance engine output plus column sums.

    total_debit always equals total_credit because every stored entry is
    balanced.
    """
    tenant_id = require_tenant_id(tenant_id)
    accounts = calculate_balances(tenant_id, as_of_date)

    total_debit = sum((a.total_debit for a in accounts), ZERO)
    total_credit = sum((a.total_credit for a in accounts), ZERO)

    logger.debug(
        f"Trial balance for company {tenant_id} as of {as_of_date}: "
        f"debit={total_debit} credit={total_credit}"
    )
    return TrialBalanceReport(
        as_of_date=as_of_date,
        accounts=accounts,
        total_debit=total_debit,
        total_credit=total_credit,
    )
