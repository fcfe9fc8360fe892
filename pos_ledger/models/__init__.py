"""Models package - exports all SQLAlchemy models."""
from pos_ledger.models.app_user import AppUser
from pos_ledger.models.product import Product
from pos_ledger.models.product_variant import ProductVariant
from pos_ledger.models.sale import Sale, SaleStatus
from pos_ledger.models.sale_line import SaleLine
from pos_ledger.models.sale_payment import SalePayment, PaymentMethod, normalize_payment_method

__all__ = [
    'AppUser',
    'Product', 'ProductVariant',
    'Sale', 'SaleStatus', 'SaleLine',
    'SalePayment', 'PaymentMethod', 'normalize_payment_method',
]
