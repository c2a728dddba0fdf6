# accounting/chart.py
"""
Chart of accounts setup.

Seeds the PUC (Plan Unico de Cuentas) for a Colombian retail business
and the default AccountingConfig mapping. Runs once per company.
"""

import logging

from django.db import transaction

from accounting.exceptions import NotFoundError, StateError
from accounting.models import Account, AccountingConfig
from accounting.write_barrier import bootstrap_writes_allowed
from accounts.models import Company
from tenant.context import require_tenant_id


logger = logging.getLogger(__name__)

A = Account.AccountType
D = Account.Nature.DEBIT
C = Account.Nature.CREDIT

# (code, name, type, nature, parent_code, is_bank_account), parents first
PUC_ACCOUNTS = (
    # Clase 1: Activos
    ("1", "Activos", A.ASSET, D, None, False),
    ("11", "Disponible", A.ASSET, D, "1", False),
    ("1105", "Caja", A.ASSET, D, "11", False),
    ("110505", "Caja General", A.ASSET, D, "1105", False),
    ("1110", "Bancos", A.ASSET, D, "11", False),
    ("111005", "Bancos Nacionales", A.ASSET, D, "1110", True),
    ("13", "Deudores", A.ASSET, D, "1", False),
    ("1305", "Clientes", A.ASSET, D, "13", False),
    ("130505", "Clientes Nacionales", A.ASSET, D, "1305", False),
    ("1355", "Anticipo de Impuestos y Contribuciones", A.ASSET, D, "13", False),
    ("135515", "Retencion en la Fuente", A.ASSET, D, "1355", False),
    ("135517", "Impuesto a las Ventas Retenido", A.ASSET, D, "1355", False),
    ("14", "Inventarios", A.ASSET, D, "1", False),
    ("1435", "Mercancias no Fabricadas por la Empresa", A.ASSET, D, "14", False),
    ("143505", "Inventario de Mercancias", A.ASSET, D, "1435", False),

    # Clase 2: Pasivos
    ("2", "Pasivos", A.LIABILITY, C, None, False),
    ("22", "Proveedores", A.LIABILITY, C, "2", False),
    ("2205", "Proveedores Nacionales", A.LIABILITY, C, "22", False),
    ("220505", "Proveedores Nacionales", A.LIABILITY, C, "2205", False),
    ("23", "Cuentas por Pagar", A.LIABILITY, C, "2", False),
    ("2365", "Retencion en la Fuente", A.LIABILITY, C, "23", False),
    ("236540", "Compras 2.5%", A.LIABILITY, C, "2365", False),
    ("24", "Impuestos, Gravamenes y Tasas", A.LIABILITY, C, "2", False),
    ("2408", "Impuesto sobre las Ventas por Pagar", A.LIABILITY, C, "24", False),
    ("240805", "IVA por Pagar 19%", A.LIABILITY, C, "2408", False),
    ("240810", "IVA por Pagar 5%", A.LIABILITY, C, "2408", False),
    ("2412", "Impuesto sobre las Ventas Descontable", A.LIABILITY, C, "24", False),
    ("241205", "IVA Descontable 19%", A.LIABILITY, C, "2412", False),
    ("241210", "IVA Descontable 5%", A.LIABILITY, C, "2412", False),
    ("25", "Obligaciones Laborales", A.LIABILITY, C, "2", False),
    ("2505", "Salarios por Pagar", A.LIABILITY, C, "25", False),
    ("2510", "Cesantias Consolidadas", A.LIABILITY, C, "25", False),

    # Clase 3: Patrimonio
    ("3", "Patrimonio", A.EQUITY, C, None, False),
    ("31", "Capital Social", A.EQUITY, C, "3", False),
    ("3105", "Capital Suscrito y Pagado", A.EQUITY, C, "31", False),
    ("36", "Resultados del Ejercicio", A.EQUITY, C, "3", False),
    ("3605", "Utilidad del Ejercicio", A.EQUITY, C, "36", False),
    ("3610", "Perdida del Ejercicio", A.EQUITY, D, "36", False),
    ("37", "Resultados de Ejercicios Anteriores", A.EQUITY, C, "3", False),
    ("3705", "Utilidades Acumuladas", A.EQUITY, C, "37", False),
    ("3710", "Perdidas Acumuladas", A.EQUITY, D, "37", False),

    # Clase 4: Ingresos
    ("4", "Ingresos", A.REVENUE, C, None, False),
    ("41", "Operacionales", A.REVENUE, C, "4", False),
    ("4135", "Comercio al por Mayor y Menor", A.REVENUE, C, "41", False),
    ("413505", "Ventas de Mercancias", A.REVENUE, C, "4135", False),
    ("42", "No Operacionales", A.REVENUE, C, "4", False),
    ("4295", "Diversos", A.REVENUE, C, "42", False),
    ("429505", "Ajustes de Inventario (Sobrante)", A.REVENUE, C, "4295", False),

    # Clase 5: Gastos
    ("5", "Gastos", A.EXPENSE, D, None, False),
    ("51", "Operacionales de Administracion", A.EXPENSE, D, "5", False),
    ("5105", "Gastos de Personal", A.EXPENSE, D, "51", False),
    ("5115", "Arrendamientos", A.EXPENSE, D, "51", False),
    ("5120", "Servicios", A.EXPENSE, D, "51", False),
    ("5195", "Diversos", A.EXPENSE, D, "51", False),
    ("519505", "Ajustes de Inventario (Faltante)", A.EXPENSE, D, "5195", False),
    ("53", "No Operacionales", A.EXPENSE, D, "5", False),
    ("5305", "Gastos Financieros", A.EXPENSE, D, "53", False),

    # Clase 6: Costos de venta
    ("6", "Costos de Venta", A.COGS, D, None, False),
    ("61", "Costo de Ventas", A.COGS, D, "6", False),
    ("6135", "Comercio al por Mayor y Menor", A.COGS, D, "61", False),
    ("613505", "Costo de Mercancias Vendidas", A.COGS, D, "6135", False),
)

# AccountingConfig mapping -> PUC code
DEFAULT_MAPPINGS = {
    "cash_account": "110505",
    "bank_account": "111005",
    "accounts_receivable": "130505",
    "inventory_account": "143505",
    "accounts_payable": "220505",
    "iva_por_pagar": "240805",
    "iva_descontable": "241205",
    "revenue_account": "413505",
    "cogs_account": "613505",
    "inventory_adjustment": "519505",
    "misc_revenue": "429505",
    "misc_expense": "519505",
    "rete_fuente_received": "135515",
    "rete_fuente_payable": "236540",
    "payroll_expense": "5105",
    "payroll_payable": "2505",
}


@transaction.atomic
def setup_chart_of_accounts(tenant_id: int | None) -> AccountingConfig:
    """
    Create the PUC accounts and the default AccountingConfig.

    Auto entry generation starts disabled.

    Raises:
        NotFoundError: the company does not exist
        StateError: the company already has accounts
    """
    tenant_id = require_tenant_id(tenant_id)
    try:
        company = Company.objects.get(pk=tenant_id)
    except Company.DoesNotExist:
        raise NotFoundError(f"Company {tenant_id} not found.")

    if Account.objects.filter(company=company).exists():
        raise StateError(
            "La contabilidad ya esta configurada para esta empresa. Ya existen cuentas."
        )

    logger.info(f"Setting up accounting for company {tenant_id}", extra={"tenant_id": tenant_id})

    by_code: dict[str, Account] = {}
    with bootstrap_writes_allowed():
        for code, name, account_type, nature, parent_code, is_bank in PUC_ACCOUNTS:
            by_code[code] = Account.objects.create(
                company=company,
                code=code,
                name=name,
                account_type=account_type,
                nature=nature,
                parent=by_code.get(parent_code) if parent_code else None,
                is_system_account=True,
                is_bank_account=is_bank,
            )

        config = AccountingConfig.objects.create(
            company=company,
            auto_generate_entries=False,
            **{mapping: by_code[code] for mapping, code in DEFAULT_MAPPINGS.items()},
        )

    logger.info(
        f"Accounting set up: {len(PUC_ACCOUNTS)} accounts created for company {tenant_id}",
        extra={"tenant_id": tenant_id},
    )
    return config
