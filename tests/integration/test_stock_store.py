"""
Integration tests for StockStore.
"""
import pytest

from pos_ledger.exceptions import NotFoundError
from pos_ledger.models import Product, ProductVariant


class TestAdjust:
    """Tests for StockStore.adjust."""

    def test_adjust_returns_new_quantity(self, database, stock_store, variant):
        with database.unit_of_work() as session:
            assert stock_store.adjust(session, variant.id, -3) == 7
            assert stock_store.adjust(session, variant.id, 5) == 12
        assert stock_store.get_quantity(variant.id) == 12

    def test_adjust_syncs_loaded_variant(self, database, stock_store, variant):
        with database.unit_of_work() as session:
            loaded = stock_store.get(variant.id, session=session)
            stock_store.adjust(session, variant.id, -4)
            assert loaded.stock == 6

    def test_adjust_is_rolled_back_with_session(self, database, stock_store, variant):
        with pytest.raises(RuntimeError):
            with database.unit_of_work() as session:
                stock_store.adjust(session, variant.id, -10)
                raise RuntimeError('abort')
        assert stock_store.get_quantity(variant.id) == 10

    def test_adjust_unknown_variant(self, database, stock_store):
        with pytest.raises(NotFoundError):
            with database.unit_of_work() as session:
                stock_store.adjust(session, 4040, 1)

    def test_adjust_below_zero_warns(self, database, stock_store, variant, caplog):
        with database.unit_of_work() as session:
            assert stock_store.adjust(session, variant.id, -11) == -1
        assert 'negative' in caplog.text


class TestReads:
    """Tests for StockStore lookups."""

    def test_get_and_find(self, stock_store, variant):
        found = stock_store.get(variant.id)
        assert found.sku == 'P-001-500'
        assert found.display_name == 'Claw Hammer - 500g'
        assert stock_store.find(999) is None
        with pytest.raises(NotFoundError):
            stock_store.get(999)

    def test_get_quantity_unknown(self, stock_store):
        with pytest.raises(NotFoundError):
            stock_store.get_quantity(999)


class TestLowStock:
    """Tests for the low stock listing."""

    def test_lists_active_variants_at_or_below_minimum(self, database, stock_store, product, variant):
        with database.unit_of_work() as session:
            inactive_product = Product(code='P-OFF', name='Discontinued')
            session.add(inactive_product)
            session.flush()
            session.add_all([
                ProductVariant(product_id=product.id, sku='AT-MIN', variant_name='At min', stock=5, min_stock=5),
                ProductVariant(product_id=product.id, sku='NEG', variant_name='Negative', stock=-2, min_stock=5),
                ProductVariant(product_id=product.id, sku='OFF', variant_name='Inactive', stock=0, active=False),
                ProductVariant(product_id=inactive_product.id, sku='OFF-P', variant_name='Any', stock=0),
            ])
            inactive_product.active = False

        low = stock_store.list_low_stock()
        assert [v.sku for v in low] == ['NEG', 'AT-MIN']
        assert stock_store.count_low_stock() == 2
        # Product is eager loaded for display
        assert low[0].display_name == 'Claw Hammer - Negative'
