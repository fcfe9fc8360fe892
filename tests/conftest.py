import pytest
from decimal import Decimal

from pos_ledger import create_app
from pos_ledger.models import AppUser, Product, ProductVariant
from pos_ledger.repositories import SaleRepository, StockStore
from pos_ledger.services.report_service import ReportService
from pos_ledger.services.sale_adjustment_service import SaleAdjustmentService
from pos_ledger.services.sale_draft_service import SaleDraft, SaleLineDraft, SalePaymentDraft
from pos_ledger.services.sale_ledger_service import SaleLedgerService


@pytest.fixture(scope='function')
def app():
    """Create application instance backed by a fresh in-memory database."""
    app = create_app('config.TestConfig')
    yield app
    app.extensions['database'].close()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def runner(app):
    """Create CLI runner."""
    return app.test_cli_runner()


@pytest.fixture(scope='function')
def database(app):
    """Database handle of the test app."""
    return app.extensions['database']


@pytest.fixture(scope='function')
def seller(database):
    """Create test seller."""
    with database.unit_of_work() as session:
        user = AppUser(username='seller1', full_name='Seller One', role='seller')
        session.add(user)
        session.flush()
    return user


@pytest.fixture(scope='function')
def other_seller(database):
    """Create a second seller."""
    with database.unit_of_work() as session:
        user = AppUser(username='seller2', role='seller')
        session.add(user)
        session.flush()
    return user


@pytest.fixture(scope='function')
def product(database):
    """Create test product."""
    with database.unit_of_work() as session:
        product = Product(code='P-001', name='Claw Hammer', brand='Stanley')
        session.add(product)
        session.flush()
    return product


def _add_variant(database, product_id, sku, name, price, stock, min_stock=5, active=True):
    with database.unit_of_work() as session:
        variant = ProductVariant(
            product_id=product_id,
            sku=sku,
            variant_name=name,
            cost_price=Decimal('40.00'),
            sale_price=Decimal(price),
            stock=stock,
            min_stock=min_stock,
            active=active,
        )
        session.add(variant)
        session.flush()
    return variant


@pytest.fixture(scope='function')
def variant(database, product):
    """Variant with stock 10 and price 100.00."""
    return _add_variant(database, product.id, 'P-001-500', '500g', '100.00', 10)


@pytest.fixture(scope='function')
def second_variant(database, product):
    """Variant with stock 10 and price 50.00."""
    return _add_variant(database, product.id, 'P-001-750', '750g', '50.00', 10)


@pytest.fixture(scope='function')
def inactive_variant(database, product):
    return _add_variant(database, product.id, 'P-001-OLD', 'Old model', '80.00', 10, active=False)


@pytest.fixture(scope='function')
def stock_store(database):
    return StockStore(database)


@pytest.fixture(scope='function')
def sale_repository(database):
    return SaleRepository(database)


@pytest.fixture(scope='function')
def ledger(database, stock_store, sale_repository):
    return SaleLedgerService(database, stock_store, sale_repository)


@pytest.fixture(scope='function')
def adjustments(database, stock_store, sale_repository):
    return SaleAdjustmentService(database, stock_store, sale_repository)


@pytest.fixture(scope='function')
def reports(database, stock_store):
    return ReportService(database, stock_store)


@pytest.fixture(scope='function')
def make_draft(seller):
    """
    Build a SaleDraft from (variant, quantity) pairs.

    Lines use the variant's sale price; by default a single cash payment
    covers the total.
    """
    def _make(*items, payments=None, notes=None, seller_id=None):
        lines = tuple(
            SaleLineDraft(variant_id=v.id, quantity=qty, unit_price=v.sale_price)
            for v, qty in items
        )
        if payments is None:
            total = sum((line.subtotal for line in lines), Decimal('0.00'))
            payments = (SalePaymentDraft(method='cash', amount=total),)
        return SaleDraft(
            seller_id=seller_id or seller.id,
            lines=lines,
            payments=tuple(payments),
            notes=notes,
        )
    return _make
