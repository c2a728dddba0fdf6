# accounting/bridge.py
"""
Accounting bridge: business events -> automatic journal entries.

The bridge is an outbox consumer. It runs after the emitting transaction
has committed, so nothing it does can roll back or delay the business
operation that produced the event.

Rules:
- Entries are generated only when AccountingConfig.auto_generate_entries
  is on and the mappings a handler needs are set; otherwise the event is
  skipped with a log line.
- Auto entries are created directly POSTED through create_auto_entry.
- Every handler runs inside a failure boundary: errors are logged and
  swallowed, and the event is still marked processed.
- An event that already produced an entry is never applied twice.

Triggers:
    invoice.created          DR Clientes/Caja, CR Ingresos, CR IVA, DR Costo, CR Inventario
    invoice.cancelled        exact reverse of the sale entry
    payment.received         DR Caja/Bancos, CR Clientes
    purchase_order.received  DR Inventario, DR IVA descontable, CR ReteFuente, CR Proveedores
    stock.adjusted           Inventario vs ingresos/gastos diversos
    payroll.approved         personnel expense vs payables
    credit_note.issued       reverse revenue and IVA, COGS on returns
    debit_note.issued        additional charge to the customer
"""

import logging
from datetime import date
from decimal import Decimal

from django.db import transaction

from accounting.commands import create_auto_entry
from accounting.exceptions import ConfigurationError
from accounting.models import AccountingConfig, JournalEntry
from accounting.tax_constants import rete_fuente_withholding
from commerce.models import PaymentMethod
from events.consumers import BaseConsumer
from events.models import BusinessEvent
from events.types import EventTypes


logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
CENT = Decimal("0.01")

COGS_RETURN_REASONS = ("DEVOLUCION_PARCIAL", "DEVOLUCION_TOTAL")


def _amount(value) -> Decimal:
    if value in (None, ""):
        return ZERO
    return Decimal(str(value))


def _date(value: str) -> date:
    return date.fromisoformat(value)


def _line(account_id: int, description: str, debit=ZERO, credit=ZERO) -> dict:
    return {
        "account_id": account_id,
        "description": description,
        "debit": debit,
        "credit": credit,
    }


def _cost_of_items(items: list) -> Decimal:
    """Sum of quantity x cost_price over items that carry a cost."""
    total = ZERO
    for item in items:
        cost_price = _amount(item.get("cost_price"))
        if cost_price:
            total += cost_price * _amount(item.get("quantity"))
    return total.quantize(CENT)


def _require(config: AccountingConfig, *mappings: str) -> dict[str, int]:
    """
    Account ids for the given mappings.

    Raises:
        ConfigurationError: one or more mappings are not set
    """
    ids = {m: config.account_id_for(m) for m in mappings}
    missing = [m for m, account_id in ids.items() if not account_id]
    if missing:
        raise ConfigurationError(
            f"Accounting config incomplete: {', '.join(missing)}",
            missing=missing,
        )
    return ids


def _tax_line(config: AccountingConfig, mapping: str, tax: Decimal, description: str, *, debit: bool):
    """IVA line for a non-zero tax amount; None when there is no tax."""
    if tax <= 0:
        return None
    account_id = _require(config, mapping)[mapping]
    if debit:
        return _line(account_id, description, debit=tax)
    return _line(account_id, description, credit=tax)


class AccountingBridge(BaseConsumer):
    """Outbox consumer generating POSTED auto entries from business events."""

    @property
    def name(self) -> str:
        return "accounting_bridge"

    @property
    def consumes(self):
        return list(self._handlers())

    def _handlers(self) -> dict:
        return {
            EventTypes.INVOICE_CREATED: self._handle_invoice_created,
            EventTypes.INVOICE_CANCELLED: self._handle_invoice_cancelled,
            EventTypes.PAYMENT_RECEIVED: self._handle_payment_received,
            EventTypes.PURCHASE_ORDER_RECEIVED: self._handle_purchase_received,
            EventTypes.STOCK_ADJUSTED: self._handle_stock_adjusted,
            EventTypes.PAYROLL_APPROVED: self._handle_payroll_approved,
            EventTypes.CREDIT_NOTE_ISSUED: self._handle_credit_note,
            EventTypes.DEBIT_NOTE_ISSUED: self._handle_debit_note,
        }

    def handle(self, event: BusinessEvent) -> None:
        """
        Apply one event inside the failure boundary.

        Never raises: configuration gaps are logged as warnings, anything
        else with its traceback. The savepoint discards partial writes.
        """
        handler = self._handlers().get(event.event_type)
        if handler is None:
            return

        tenant_id = event.company_id
        config = AccountingConfig.objects.filter(company_id=tenant_id).first()
        if config is None or not config.auto_generate_entries:
            logger.debug(
                f"Auto entries disabled for company {tenant_id}, skipping {event.event_type}",
                extra={"tenant_id": tenant_id},
            )
            return

        if JournalEntry.objects.filter(company_id=tenant_id, origin_event=event).exists():
            logger.debug(
                f"Event {event.id} already has an auto entry, skipping",
                extra={"tenant_id": tenant_id},
            )
            return

        try:
            with transaction.atomic():
                entry = handler(event, config, event.data)
        except ConfigurationError as e:
            logger.warning(
                f"{e.message}; skipping {event.event_type} {event.aggregate_id}",
                extra={"tenant_id": tenant_id},
            )
            return
        except Exception:
            logger.exception(
                f"Failed to generate accounting entry for {event.event_type} {event.aggregate_id}",
                extra={"tenant_id": tenant_id},
            )
            return

        if entry is not None:
            logger.debug(
                f"Accounting entry {entry.entry_number} generated for {event.event_type} "
                f"{event.aggregate_id}",
                extra={"tenant_id": tenant_id},
            )

    # =========================================================================
    # Sales
    # =========================================================================

    def _handle_invoice_created(self, event, config, data):
        """
        DR Clientes (Caja for immediate POS sales) = total
        CR Ingresos = subtotal
        CR IVA por pagar = tax
        DR Costo de ventas / CR Inventario = cost of items sold
        """
        ids = _require(
            config, "accounts_receivable", "revenue_account", "cogs_account", "inventory_account",
        )
        number = data["invoice_number"]
        subtotal, tax, total = _amount(data["subtotal"]), _amount(data["tax"]), _amount(data["total"])

        debit_account = ids["accounts_receivable"]
        if data.get("is_pos_immediate") and config.cash_account_id:
            debit_account = config.cash_account_id

        lines = [
            _line(debit_account, f"Factura {number}", debit=total),
            _line(ids["revenue_account"], f"Venta {number}", credit=subtotal),
        ]
        tax_line = _tax_line(config, "iva_por_pagar", tax, f"IVA Factura {number}", debit=False)
        if tax_line:
            lines.append(tax_line)

        cogs = _cost_of_items(data.get("items") or [])
        if cogs > 0:
            lines.append(_line(ids["cogs_account"], f"Costo de venta {number}", debit=cogs))
            lines.append(_line(ids["inventory_account"], f"Salida inventario {number}", credit=cogs))

        return create_auto_entry(
            event.company_id,
            date=_date(data["issue_date"]),
            description=f"Venta - Factura {number}",
            source=JournalEntry.Source.INVOICE_SALE,
            invoice_id=data["invoice_id"],
            lines=lines,
            origin_event=event,
        )

    def _handle_invoice_cancelled(self, event, config, data):
        """Sale lines with debit and credit swapped; POS sales go back out of Caja."""
        ids = _require(
            config, "accounts_receivable", "revenue_account", "cogs_account", "inventory_account",
        )
        number = data["invoice_number"]
        subtotal, tax, total = _amount(data["subtotal"]), _amount(data["tax"]), _amount(data["total"])

        credit_account = ids["accounts_receivable"]
        if data.get("is_pos_immediate") and config.cash_account_id:
            credit_account = config.cash_account_id

        lines = [
            _line(credit_account, f"Anulacion Factura {number}", credit=total),
            _line(ids["revenue_account"], f"Anulacion venta {number}", debit=subtotal),
        ]
        tax_line = _tax_line(config, "iva_por_pagar", tax, f"Anulacion IVA {number}", debit=True)
        if tax_line:
            lines.append(tax_line)

        cogs = _cost_of_items(data.get("items") or [])
        if cogs > 0:
            lines.append(_line(ids["cogs_account"], f"Anulacion costo {number}", credit=cogs))
            lines.append(_line(ids["inventory_account"], f"Devolucion inventario {number}", debit=cogs))

        return create_auto_entry(
            event.company_id,
            date=_date(data["date"]),
            description=f"Anulacion - Factura {number}",
            source=JournalEntry.Source.INVOICE_CANCEL,
            invoice_id=data["invoice_id"],
            lines=lines,
            origin_event=event,
        )

    def _handle_payment_received(self, event, config, data):
        """DR Caja (cash) or Bancos (any other method), CR Clientes."""
        ids = _require(config, "accounts_receivable")
        number = data["invoice_number"]
        method = data["method"]
        amount = _amount(data["amount"])

        mapping = "cash_account" if method == PaymentMethod.CASH else "bank_account"
        debit_account = _require(config, mapping)[mapping]

        return create_auto_entry(
            event.company_id,
            date=_date(data["payment_date"]),
            description=f"Pago recibido - Factura {number} ({method})",
            source=JournalEntry.Source.PAYMENT_RECEIVED,
            payment_id=data["payment_id"],
            invoice_id=data["invoice_id"],
            lines=[
                _line(debit_account, f"Cobro {number}", debit=amount),
                _line(ids["accounts_receivable"], f"Abono cliente {number}", credit=amount),
            ],
            origin_event=event,
        )

    # =========================================================================
    # Purchases and inventory
    # =========================================================================

    def _handle_purchase_received(self, event, config, data):
        """
        DR Inventario = subtotal
        DR IVA descontable = tax
        CR ReteFuente por pagar = 2.5% of subtotal above the minimum base
        CR Proveedores = total - withholding
        """
        ids = _require(config, "inventory_account", "accounts_payable")
        number = data["order_number"]
        subtotal, tax, total = _amount(data["subtotal"]), _amount(data["tax"]), _amount(data["total"])

        lines = [_line(ids["inventory_account"], f"Compra {number}", debit=subtotal)]
        tax_line = _tax_line(config, "iva_descontable", tax, f"IVA compra {number}", debit=True)
        if tax_line:
            lines.append(tax_line)

        withheld = ZERO
        if config.rete_fuente_payable_id:
            withheld = rete_fuente_withholding(subtotal)
            if withheld > 0:
                lines.append(_line(
                    config.rete_fuente_payable_id,
                    f"ReteFuente compra {number} (2.5%)",
                    credit=withheld,
                ))

        lines.append(_line(ids["accounts_payable"], f"Proveedor {number}", credit=total - withheld))

        return create_auto_entry(
            event.company_id,
            date=_date(data["received_date"]),
            description=f"Compra recibida - OC {number}",
            source=JournalEntry.Source.PURCHASE_RECEIVED,
            purchase_order_id=data["purchase_order_id"],
            lines=lines,
            origin_event=event,
        )

    def _handle_stock_adjusted(self, event, config, data):
        """
        Surplus: DR Inventario, CR ingresos diversos.
        Shortage: DR gastos diversos, CR Inventario.
        """
        ids = _require(config, "inventory_account")
        quantity = _amount(data["quantity"])
        sku = data["product_sku"]
        amount = (abs(quantity) * _amount(data["cost_price"])).quantize(CENT)
        if amount == 0:
            return None

        inventory = ids["inventory_account"]
        if quantity > 0:
            counter = config.misc_revenue_id or config.inventory_adjustment_id
            description = f"Ajuste sobrante - {sku} ({quantity.normalize():f} und)"
            lines = [
                _line(inventory, f"Sobrante {sku}", debit=amount),
                _line(counter, f"Ajuste {sku}", credit=amount),
            ]
        else:
            counter = config.misc_expense_id or config.inventory_adjustment_id
            description = f"Ajuste faltante - {sku} ({abs(quantity).normalize():f} und)"
            lines = [
                _line(counter, f"Faltante {sku}", debit=amount),
                _line(inventory, f"Ajuste {sku}", credit=amount),
            ]
        if not counter:
            raise ConfigurationError(
                "Accounting config incomplete: inventory_adjustment",
                missing=["inventory_adjustment"],
            )

        return create_auto_entry(
            event.company_id,
            date=_date(data["date"]),
            description=description,
            source=JournalEntry.Source.STOCK_ADJUSTMENT,
            stock_movement_id=data["stock_movement_id"],
            lines=lines,
            origin_event=event,
        )

    # =========================================================================
    # Payroll
    # =========================================================================

    def _handle_payroll_approved(self, event, config, data):
        """
        DR Gastos de personal = devengados
        DR Aportes patronales = employer contributions
        DR Provisiones = social benefit provisions
        CR Salarios por pagar = neto
        CR Retenciones = retencion en la fuente
        CR Aportes = employee contributions + employer contributions
        CR Provisiones por pagar = provisions

        Zero components produce no line; with no lines there is no entry.
        """
        ids = _require(config, "payroll_expense", "payroll_payable")
        period = data["period_label"]
        totals = {key: _amount(value) for key, value in (data.get("totals") or {}).items()}

        def total(*keys):
            return sum((totals.get(k, ZERO) for k in keys), ZERO)

        devengados = total("devengados")
        neto = total("neto")
        retencion = total("retencion_fuente")
        aportes_empleador = total(
            "salud_empleador", "pension_empleador", "arl_empleador",
            "caja_empleador", "sena_empleador", "icbf_empleador",
        )
        aportes_empleado = total("salud_empleado", "pension_empleado", "fondo_solidaridad")
        provisiones = total(
            "provision_prima", "provision_cesantias",
            "provision_intereses", "provision_vacaciones",
        )

        contributions = config.payroll_contributions_id
        provisions = config.payroll_provisions_id
        retentions = config.payroll_retentions_id

        lines = []
        if devengados > 0:
            lines.append(_line(ids["payroll_expense"], f"Gastos personal {period}", debit=devengados))
        if aportes_empleador > 0 and contributions:
            lines.append(_line(contributions, f"Aportes patronales {period}", debit=aportes_empleador))
        if provisiones > 0 and provisions:
            lines.append(_line(provisions, f"Provisiones {period}", debit=provisiones))
        if neto > 0:
            lines.append(_line(ids["payroll_payable"], f"Nómina por pagar {period}", credit=neto))
        if retencion > 0 and retentions:
            lines.append(_line(retentions, f"ReteFuente nómina {period}", credit=retencion))
        if aportes_empleado > 0 and contributions:
            lines.append(_line(contributions, f"Aportes empleado {period}", credit=aportes_empleado))
        if aportes_empleador > 0 and contributions:
            lines.append(_line(
                contributions, f"Aportes patronales por pagar {period}", credit=aportes_empleador,
            ))
        if provisiones > 0 and provisions:
            lines.append(_line(provisions, f"Provisiones por pagar {period}", credit=provisiones))

        if not lines:
            return None

        return create_auto_entry(
            event.company_id,
            date=_date(data["date"]),
            description=f"Nómina aprobada - {period}",
            source=JournalEntry.Source.PAYROLL_APPROVED,
            payroll_period_id=data["payroll_period_id"],
            lines=lines,
            origin_event=event,
        )

    # =========================================================================
    # Electronic invoicing notes
    # =========================================================================

    def _handle_credit_note(self, event, config, data):
        """Reverse revenue and IVA; returns also put the goods back in stock."""
        ids = _require(config, "accounts_receivable", "revenue_account")
        note = data["note_number"]
        subtotal, tax, total = _amount(data["subtotal"]), _amount(data["tax"]), _amount(data["total"])

        lines = [
            _line(ids["accounts_receivable"], f"Nota credito {note}", credit=total),
            _line(ids["revenue_account"], f"Devolucion venta {note}", debit=subtotal),
        ]
        tax_line = _tax_line(config, "iva_por_pagar", tax, f"Devolucion IVA {note}", debit=True)
        if tax_line:
            lines.append(tax_line)

        if (
            data.get("reason_code") in COGS_RETURN_REASONS
            and config.cogs_account_id
            and config.inventory_account_id
        ):
            cogs = _cost_of_items(data.get("items") or [])
            if cogs > 0:
                lines.append(_line(config.cogs_account_id, f"Devolucion costo {note}", credit=cogs))
                lines.append(_line(
                    config.inventory_account_id, f"Devolucion inventario {note}", debit=cogs,
                ))

        return create_auto_entry(
            event.company_id,
            date=_date(data["date"]),
            description=f"Nota credito - {note} (Factura {data['invoice_number']})",
            source=JournalEntry.Source.CREDIT_NOTE,
            invoice_id=data["invoice_id"],
            dian_document_id=data["dian_document_id"],
            lines=lines,
            origin_event=event,
        )

    def _handle_debit_note(self, event, config, data):
        ids = _require(config, "accounts_receivable", "revenue_account")
        note = data["note_number"]
        subtotal, tax, total = _amount(data["subtotal"]), _amount(data["tax"]), _amount(data["total"])

        lines = [
            _line(ids["accounts_receivable"], f"Nota debito {note}", debit=total),
            _line(ids["revenue_account"], f"Cargo adicional {note}", credit=subtotal),
        ]
        tax_line = _tax_line(config, "iva_por_pagar", tax, f"IVA nota debito {note}", debit=False)
        if tax_line:
            lines.append(tax_line)

        return create_auto_entry(
            event.company_id,
            date=_date(data["date"]),
            description=f"Nota debito - {note} (Factura {data['invoice_number']})",
            source=JournalEntry.Source.DEBIT_NOTE,
            invoice_id=data["invoice_id"],
            dian_document_id=data["dian_document_id"],
            lines=lines,
            origin_event=event,
        )
