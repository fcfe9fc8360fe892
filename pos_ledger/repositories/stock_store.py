"""Stock store - quantity-on-hand per product variant."""
import logging
from contextlib import contextmanager
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from pos_ledger.database import Database
from pos_ledger.exceptions import NotFoundError
from pos_ledger.models import Product, ProductVariant

logger = logging.getLogger(__name__)


class StockStore:
    """
    Stock levels of sellable variants.

    Writes always run inside the caller's session so the ledger can commit
    or roll them back together with the sale rows.
    """

    def __init__(self, database: Database):
        self.database = database

    @contextmanager
    def _reading(self, session: Optional[Session]):
        if session is not None:
            yield session
            return
        own_session = self.database.session()
        try:
            yield own_session
        finally:
            own_session.close()

    # ==================== WRITES ====================

    def adjust(self, session: Session, variant_id: int, delta: int) -> int:
        """
        Apply ``stock += delta`` to a variant and return the new quantity.

        Negative results are allowed and only logged.

        Raises:
            NotFoundError: If the variant does not exist
        """
        updated = session.query(ProductVariant).filter(
            ProductVariant.id == variant_id
        ).update(
            {ProductVariant.stock: ProductVariant.stock + delta},
            synchronize_session='evaluate'
        )

        if not updated:
            raise NotFoundError(f'Variant #{variant_id} not found', payload={'variant_id': variant_id})

        new_stock = session.query(ProductVariant.stock).filter(
            ProductVariant.id == variant_id
        ).scalar()

        if new_stock < 0:
            logger.warning("Variant #%s stock is negative after adjusting by %s: %s",
                           variant_id, delta, new_stock)
        else:
            logger.debug("Variant #%s stock adjusted by %s -> %s", variant_id, delta, new_stock)
        return new_stock

    # ==================== READS ====================

    def find(self, variant_id: int, session: Optional[Session] = None) -> Optional[ProductVariant]:
        with self._reading(session) as s:
            return s.query(ProductVariant).options(
                joinedload(ProductVariant.product)
            ).filter(ProductVariant.id == variant_id).first()

    def get(self, variant_id: int, session: Optional[Session] = None) -> ProductVariant:
        """Get a variant or raise NotFoundError."""
        variant = self.find(variant_id, session)
        if variant is None:
            raise NotFoundError(f'Variant #{variant_id} not found', payload={'variant_id': variant_id})
        return variant

    def get_quantity(self, variant_id: int, session: Optional[Session] = None) -> int:
        with self._reading(session) as s:
            stock = s.query(ProductVariant.stock).filter(ProductVariant.id == variant_id).scalar()
        if stock is None:
            raise NotFoundError(f'Variant #{variant_id} not found', payload={'variant_id': variant_id})
        return stock

    def list_low_stock(self, session: Optional[Session] = None) -> List[ProductVariant]:
        """Active variants of active products at or below their minimum stock."""
        with self._reading(session) as s:
            return s.query(ProductVariant).join(
                Product, Product.id == ProductVariant.product_id
            ).options(
                joinedload(ProductVariant.product)
            ).filter(
                ProductVariant.active.is_(True),
                Product.active.is_(True),
                ProductVariant.stock <= ProductVariant.min_stock
            ).order_by(
                ProductVariant.stock.asc(),
                Product.name
            ).all()

    def count_low_stock(self, session: Optional[Session] = None) -> int:
        with self._reading(session) as s:
            return s.query(ProductVariant).join(
                Product, Product.id == ProductVariant.product_id
            ).filter(
                ProductVariant.active.is_(True),
                Product.active.is_(True),
                ProductVariant.stock <= ProductVariant.min_stock
            ).count()
