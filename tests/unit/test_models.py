"""
Unit tests for SQLAlchemy models.
"""

import pytest
from decimal import Decimal

from pos_ledger.models import (
    AppUser, Product, ProductVariant, Sale, SaleStatus, SalePayment, PaymentMethod, normalize_payment_method
)


class TestNormalizePaymentMethod:
    """Tests for normalize_payment_method."""

    @pytest.mark.parametrize('value, expected', [
        (PaymentMethod.CASH, 'cash'),
        ('cash', 'cash'),
        ('CASH', 'cash'),
        (' Debit ', 'debit'),
        ('store-credit', 'store_credit'),
        ('Store Credit', 'store_credit'),
        ('STORE_CREDIT', 'store_credit'),
        ('wallet', 'wallet'),
    ])
    def test_accepted_values(self, value, expected):
        assert normalize_payment_method(value) == expected

    @pytest.mark.parametrize('value', ['cheque', '', None, 3])
    def test_rejected_values(self, value):
        with pytest.raises(ValueError):
            normalize_payment_method(value)


class TestProductVariantModel:
    """Tests for ProductVariant model."""

    def test_display_name(self):
        product = Product(name='Claw Hammer')
        variant = ProductVariant(variant_name='500g', product=product)
        assert variant.display_name == 'Claw Hammer - 500g'

    def test_display_name_without_product(self):
        assert ProductVariant(variant_name='500g').display_name == '500g'

    def test_is_low_stock(self):
        assert ProductVariant(stock=5, min_stock=5).is_low_stock is True
        assert ProductVariant(stock=-1, min_stock=0).is_low_stock is True
        assert ProductVariant(stock=6, min_stock=5).is_low_stock is False


class TestSaleModel:
    """Tests for Sale model."""

    def test_amount_paid_and_balance(self):
        sale = Sale(total=Decimal('300.00'), status=SaleStatus.COMPLETED)
        sale.payments = [
            SalePayment(payment_method='cash', amount=Decimal('200.00')),
            SalePayment(payment_method='debit', amount=Decimal('50.00')),
        ]
        assert sale.amount_paid == Decimal('250.00')
        assert sale.balance_due == Decimal('50.00')

    def test_is_cancelled(self):
        assert Sale(status=SaleStatus.CANCELLED).is_cancelled is True
        assert Sale(status=SaleStatus.COMPLETED).is_cancelled is False

    def test_payment_method_property(self):
        payment = SalePayment(payment_method='transfer', amount=Decimal('1'))
        assert payment.method is PaymentMethod.TRANSFER


class TestAppUserModel:
    """Tests for AppUser model."""

    def test_display_name_falls_back_to_username(self):
        assert AppUser(username='ana').display_name == 'ana'
        assert AppUser(username='ana', full_name='Ana Paz').display_name == 'Ana Paz'

    def test_username_unique(self, database, seller):
        """Test that username must be unique."""
        with pytest.raises(Exception):  # IntegrityError
            with database.unit_of_work() as session:
                session.add(AppUser(username=seller.username))
                session.flush()
