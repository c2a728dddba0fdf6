# tests/test_tax_reports.py
"""
Tests for the IVA declaration, ReteFuente summary and YTD tax summary.
"""

import pytest
from datetime import date
from decimal import Decimal

from accounting.exceptions import InvalidDateRangeError
from accounting.reports.tax import iva_declaration, rete_fuente_summary, ytd_tax_summary
from accounting.tax_constants import bimonthly_range, month_range, rete_fuente_withholding
from commerce.commands import (
    cancel_invoice,
    create_invoice,
    create_purchase_order,
    receive_purchase_order,
)
from commerce.models import Invoice, Supplier, TaxCategory, WithholdingCertificate


def _received_order(company, supplier, number, issue_date, items):
    order = create_purchase_order(
        company.id,
        supplier_id=supplier.pk,
        order_number=number,
        issue_date=issue_date,
        items=items,
    )
    return receive_purchase_order(company.id, order.pk, received_date=issue_date)


class TestTaxCalendar:

    def test_bimonthly_range(self):
        assert bimonthly_range(2026, 1) == (date(2026, 1, 1), date(2026, 2, 28), "Enero - Febrero 2026")
        assert bimonthly_range(2028, 1)[1] == date(2028, 2, 29)
        assert bimonthly_range(2026, 6)[:2] == (date(2026, 11, 1), date(2026, 12, 31))

    def test_month_range(self):
        assert month_range(2026, 4) == (date(2026, 4, 1), date(2026, 4, 30))
        assert month_range(2026, 12) == (date(2026, 12, 1), date(2026, 12, 31))

    def test_withholding_threshold(self):
        assert rete_fuente_withholding(Decimal("523740")) == Decimal("0")
        assert rete_fuente_withholding(Decimal("1000000")) == Decimal("25000")
        assert rete_fuente_withholding(Decimal("600020")) == Decimal("15001")


@pytest.mark.django_db
class TestIvaDeclaration:

    @pytest.fixture
    def documents(self, company, supplier):
        create_invoice(
            company.id,
            invoice_number="F-1",
            issue_date=date(2026, 1, 10),
            items=[
                {"description": "Gravado 19", "unit_price": "1000", "tax_rate": "19"},
                {"description": "Gravado 5", "unit_price": "200", "tax_rate": "5"},
                {"description": "Exento", "unit_price": "300", "tax_category": TaxCategory.EXENTO},
            ],
        )
        create_invoice(
            company.id,
            invoice_number="F-2",
            issue_date=date(2026, 2, 5),
            items=[{"description": "Gravado 19", "unit_price": "500"}],
        )
        create_invoice(
            company.id,
            invoice_number="F-DRAFT",
            issue_date=date(2026, 2, 6),
            status=Invoice.Status.DRAFT,
            items=[{"description": "Borrador", "unit_price": "700"}],
        )
        cancelled = create_invoice(
            company.id,
            invoice_number="F-CANCELLED",
            issue_date=date(2026, 2, 7),
            items=[{"description": "Anulada", "unit_price": "800"}],
        )
        cancel_invoice(company.id, cancelled.pk, date=date(2026, 2, 8))
        create_invoice(
            company.id,
            invoice_number="F-MARCH",
            issue_date=date(2026, 3, 1),
            items=[{"description": "Otro periodo", "unit_price": "900"}],
        )

        _received_order(
            company, supplier, "OC-1", date(2026, 1, 20),
            [{"description": "Mercancia", "unit_cost": "1000"}],
        )
        create_purchase_order(
            company.id,
            supplier_id=supplier.pk,
            order_number="OC-PENDING",
            issue_date=date(2026, 1, 21),
            items=[{"description": "Sin recibir", "unit_cost": "400"}],
        )

    def test_sales_by_rate(self, company, documents):
        report = iva_declaration(company.id, 2026, 1)

        assert [b.tax_rate for b in report.sales_by_rate] == [Decimal("19"), Decimal("5")]
        nineteen, five = report.sales_by_rate
        assert nineteen.taxable_base == Decimal("1500.00")
        assert nineteen.tax_amount == Decimal("285.00")
        assert nineteen.invoice_count == 2
        assert five.tax_amount == Decimal("10.00")
        assert five.invoice_count == 1

    def test_exempt_sales(self, company, documents):
        report = iva_declaration(company.id, 2026, 1)

        assert len(report.sales_exempt) == 1
        assert report.sales_exempt[0].category == TaxCategory.EXENTO
        assert report.sales_exempt[0].taxable_base == Decimal("300.00")

    def test_totals_and_net(self, company, documents):
        report = iva_declaration(company.id, 2026, 1)

        assert report.period_label == "Enero - Febrero 2026"
        assert report.total_sales_base == Decimal("2000.00")
        assert report.total_iva_generado == Decimal("295.00")
        assert report.total_purchases_base == Decimal("1000.00")
        assert report.total_iva_descontable == Decimal("190.00")
        assert report.net_iva_payable == Decimal("105.00")

    @pytest.mark.parametrize("period", [0, 7])
    def test_invalid_period(self, company, period):
        with pytest.raises(InvalidDateRangeError):
            iva_declaration(company.id, 2026, period)


@pytest.mark.django_db
class TestReteFuenteSummary:

    @pytest.fixture
    def purchases(self, company, supplier):
        small = Supplier.objects.create(company=company, document_number="901222333", name="Pequeno")
        _received_order(company, supplier, "OC-1", date(2026, 1, 5), [{"unit_cost": "1000000"}])
        _received_order(company, supplier, "OC-2", date(2026, 1, 25), [{"unit_cost": "600000"}])
        _received_order(company, small, "OC-3", date(2026, 1, 12), [{"unit_cost": "500000"}])
        _received_order(company, supplier, "OC-4", date(2026, 2, 2), [{"unit_cost": "900000"}])
        return small

    def test_rows_per_supplier(self, company, supplier, purchases):
        report = rete_fuente_summary(company.id, 2026, 1)

        assert report.month_label == "Enero 2026"
        assert len(report.rows) == 1
        row = report.rows[0]
        assert row.supplier_id == supplier.pk
        assert row.withholding_rate == Decimal("2.5")
        assert row.total_base == Decimal("1600000.00")
        assert row.total_withheld == Decimal("40000")
        assert row.purchase_count == 2
        assert row.certificate_number is None
        assert report.total_withheld == Decimal("40000")

    def test_certificate_is_attached(self, company, supplier, purchases):
        certificate = WithholdingCertificate.objects.create(
            company=company,
            supplier=supplier,
            year=2026,
            certificate_number="CR-2026-001",
        )

        report = rete_fuente_summary(company.id, 2026, 1)

        assert report.rows[0].certificate_id == certificate.pk
        assert report.rows[0].certificate_number == "CR-2026-001"

    def test_invalid_month(self, company):
        with pytest.raises(InvalidDateRangeError):
            rete_fuente_summary(company.id, 2026, 13)


@pytest.mark.django_db
class TestYtdTaxSummary:

    def test_year_totals(self, company, supplier):
        create_invoice(
            company.id,
            invoice_number="F-1",
            issue_date=date(2026, 3, 1),
            items=[{"unit_price": "1000"}],
        )
        create_invoice(
            company.id,
            invoice_number="F-OLD",
            issue_date=date(2025, 12, 31),
            items=[{"unit_price": "1000"}],
        )
        _received_order(company, supplier, "OC-1", date(2026, 5, 5), [{"unit_cost": "1000000"}])
        _received_order(company, supplier, "OC-2", date(2026, 6, 5), [{"unit_cost": "100"}])

        summary = ytd_tax_summary(company.id, 2026)

        assert summary.iva_generado_ytd == Decimal("190.00")
        assert summary.iva_descontable_ytd == Decimal("190019.00")
        assert summary.net_iva_ytd == Decimal("-189829.00")
        assert summary.rete_fuente_base_ytd == Decimal("1000000.00")
        assert summary.rete_fuente_withheld_ytd == Decimal("25000")
