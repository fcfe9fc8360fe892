"""
Integration tests for ReportService. Cancelled sales never count.
"""
import pytest
from datetime import date, datetime
from decimal import Decimal

from pos_ledger.models import PaymentMethod
from pos_ledger.services.sale_draft_service import SalePaymentDraft


@pytest.fixture
def march_sales(ledger, adjustments, make_draft, variant, second_variant, other_seller):
    """
    Four March 2024 sales, one of them cancelled:
    - 03/01 seller1: 3 x variant (300) paid cash
    - 03/01 seller1: 2 x second_variant (100) paid 60 cash + 40 debit
    - 03/15 other_seller: 1 x variant (100) paid transfer
    - 03/15 seller1: 5 x second_variant (250) cancelled
    """
    def record(when, draft, cancel=False):
        sale = ledger.create(draft)
        adjustments.update_created_at(sale.id, when)
        if cancel:
            ledger.cancel(sale.id)
        return sale

    return [
        record(datetime(2024, 3, 1, 10, 0), make_draft((variant, 3))),
        record(datetime(2024, 3, 1, 18, 30), make_draft(
            (second_variant, 2),
            payments=(SalePaymentDraft(method='cash', amount='60'), SalePaymentDraft(method='debit', amount='40')),
        )),
        record(datetime(2024, 3, 15, 12, 0), make_draft(
            (variant, 1),
            payments=(SalePaymentDraft(method='transfer', amount='100'),),
            seller_id=other_seller.id,
        )),
        record(datetime(2024, 3, 15, 13, 0), make_draft((second_variant, 5)), cancel=True),
    ]


class TestTotals:
    """Daily and monthly totals."""

    def test_daily(self, reports, march_sales):
        assert reports.daily_total(date(2024, 3, 1)) == Decimal('400.00')
        assert reports.daily_count(date(2024, 3, 1)) == 2
        assert reports.daily_total(date(2024, 3, 15)) == Decimal('100.00')
        assert reports.daily_count(date(2024, 3, 15)) == 1

    def test_empty_day(self, reports, march_sales):
        assert reports.daily_total(date(2024, 3, 2)) == Decimal('0.00')
        assert reports.daily_count(date(2024, 3, 2)) == 0

    def test_monthly(self, reports, march_sales):
        assert reports.monthly_total(2024, 3) == Decimal('500.00')
        assert reports.monthly_count(2024, 3) == 3
        assert reports.monthly_total(2024, 4) == Decimal('0.00')

    def test_monthly_stats(self, reports, march_sales):
        stats = reports.monthly_stats(2024, 3)
        assert stats.sales_count == 3
        assert stats.total == Decimal('500.00')
        assert stats.average == Decimal('166.67')
        assert stats.maximum == Decimal('300.00')
        assert stats.minimum == Decimal('100.00')

    def test_monthly_stats_empty(self, reports):
        stats = reports.monthly_stats(2030, 1)
        assert stats.sales_count == 0
        assert stats.total == Decimal('0.00')

    def test_daily_breakdown(self, reports, march_sales):
        assert reports.daily_breakdown(2024, 3) == {1: Decimal('400.00'), 15: Decimal('100.00')}

    def test_grand_total(self, reports, march_sales):
        assert reports.grand_total() == Decimal('500.00')


class TestSellerAndPayments:
    """Seller stats and payment method totals."""

    def test_seller_stats(self, reports, march_sales, seller, other_seller):
        stats = reports.seller_stats(seller.id)
        assert stats.seller_name == 'Seller One'
        assert stats.sales_count == 2
        assert stats.sales_total == Decimal('400.00')
        assert stats.average_sale == Decimal('200.00')

        other = reports.seller_stats(other_seller.id)
        assert other.seller_name == 'seller2'
        assert other.sales_total == Decimal('100.00')

    def test_unknown_seller(self, reports):
        stats = reports.seller_stats(999)
        assert stats.seller_name is None
        assert stats.sales_count == 0
        assert stats.average_sale == Decimal('0.00')

    def test_payment_method_totals(self, reports, march_sales):
        assert reports.payment_method_totals() == {
            PaymentMethod.CASH: Decimal('360.00'),
            PaymentMethod.DEBIT: Decimal('40.00'),
            PaymentMethod.TRANSFER: Decimal('100.00'),
        }

    def test_payment_method_totals_by_day(self, reports, march_sales):
        assert reports.payment_method_totals(date(2024, 3, 15)) == {PaymentMethod.TRANSFER: Decimal('100.00')}

    def test_payment_method_totals_with_only_end(self, reports, march_sales):
        """A lone end date means that single day."""
        assert reports.payment_method_totals(end=date(2024, 3, 15)) == {PaymentMethod.TRANSFER: Decimal('100.00')}


class TestProducts:
    """Top sellers, units sold and low stock."""

    def test_top_selling_variants(self, reports, march_sales, variant, second_variant):
        top = reports.top_selling_variants()
        assert [(row.variant_id, row.quantity) for row in top] == [(variant.id, 4), (second_variant.id, 2)]
        assert top[0].amount == Decimal('400.00')
        assert top[0].display_name == 'Claw Hammer - 500g'
        assert len(reports.top_selling_variants(limit=1)) == 1

    def test_top_selling_variants_by_period(self, reports, march_sales, variant, second_variant):
        top = reports.top_selling_variants(start=date(2024, 3, 15), end=date(2024, 3, 31))
        # The cancelled sale of second_variant on 03/15 does not count
        assert [(row.variant_id, row.quantity) for row in top] == [(variant.id, 1)]
        assert reports.top_selling_variants(start=date(2024, 4, 1), end=date(2024, 4, 30)) == []

    def test_monthly_variant_sales(self, reports, march_sales, variant, second_variant):
        rows = reports.monthly_variant_sales(2024, 3)
        assert [(row.variant_id, row.quantity, row.average_price, row.amount) for row in rows] == [
            (variant.id, 4, Decimal('100.00'), Decimal('400.00')),
            (second_variant.id, 2, Decimal('50.00'), Decimal('100.00')),
        ]
        assert reports.monthly_variant_sales(2024, 2) == []

    def test_units_sold(self, reports, march_sales, variant, second_variant):
        assert reports.units_sold(variant.id) == 4
        assert reports.units_sold(second_variant.id) == 2

    def test_low_stock(self, reports, ledger, make_draft, march_sales, variant):
        # variant: 10 - 4 = 6, second_variant: 10 - 2 = 8 (cancelled sale restored)
        assert reports.low_stock() == []

        ledger.create(make_draft((variant, 2)))
        assert [v.id for v in reports.low_stock()] == [variant.id]
