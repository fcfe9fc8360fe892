"""
Sale Adjustment Service

Administrative corrections to a recorded sale:
- Changing a line's quantity (0 removes the line)
- Swapping a line's variant
- Editing notes, date or a payment

Each correction is its own unit of work and keeps stock and the sale total
consistent: any quantity moved on a line is mirrored on the variant's stock,
and the total is recomputed from the remaining lines.
"""
import logging
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from pos_ledger.database import Database
from pos_ledger.exceptions import (
    LedgerError, NotFoundError, InvalidStateError, ValidationError, PersistenceError
)
from pos_ledger.models import Sale, SaleLine, SaleStatus, PaymentMethod, normalize_payment_method
from pos_ledger.repositories import SaleRepository, StockStore
from pos_ledger.services.sale_draft_service import (
    CENTS, check_money, to_decimal, to_money, to_positive_int, to_quantity
)

logger = logging.getLogger(__name__)


class SaleAdjustmentService:
    """Corrections applied after a sale was recorded."""

    def __init__(self, database: Database, stock_store: StockStore = None,
                 sale_repository: SaleRepository = None):
        self.database = database
        self.stock_store = stock_store or StockStore(database)
        self.sale_repository = sale_repository or SaleRepository(database)

    # ==================== LINES ====================

    def update_line_quantity(self, sale_id: int, line_id: int, quantity: int) -> Sale:
        """
        Set a line's quantity; 0 removes the line.

        Stock moves by the difference (selling more takes stock, selling less
        gives it back).
        """
        if to_decimal(quantity, 'quantity') == 0:
            quantity = 0
        else:
            quantity = to_quantity(quantity)

        with self._adjusting(sale_id, 'updating line quantity') as session:
            sale = self._lock_completed_sale(session, sale_id)
            line = self._get_line(session, sale_id, line_id)

            old_quantity = line.quantity
            if quantity == 0:
                if len(sale.lines) <= 1:
                    raise InvalidStateError(
                        f'Sale #{sale_id} must keep at least one line; cancel the sale instead',
                        payload={'sale_id': sale_id}
                    )
                self.stock_store.adjust(session, line.variant_id, old_quantity)
                session.delete(line)
                logger.info("Sale #%s: line #%s removed (%s unit(s) returned to stock)",
                            sale_id, line_id, old_quantity)
            else:
                delta = quantity - old_quantity
                if delta:
                    self.stock_store.adjust(session, line.variant_id, -delta)
                line.quantity = quantity
                line.subtotal = check_money((line.unit_price * quantity).quantize(CENTS), 'subtotal')
                logger.info("Sale #%s: line #%s quantity %s -> %s", sale_id, line_id, old_quantity, quantity)

            session.flush()
            self._recompute_total(session, sale)

        return self._reload(sale_id)

    def swap_line_variant(self, sale_id: int, line_id: int, variant_id: int,
                          quantity: Optional[int] = None) -> Sale:
        """
        Replace the variant sold on a line.

        The old variant gets its quantity back, the new one is decremented,
        and the line captures the new variant's current sale price.
        """
        variant_id = to_positive_int(variant_id, 'variant_id')
        if quantity is not None:
            quantity = to_quantity(quantity)

        with self._adjusting(sale_id, 'swapping line variant') as session:
            sale = self._lock_completed_sale(session, sale_id)
            line = self._get_line(session, sale_id, line_id)

            new_variant = self.stock_store.get(variant_id, session=session)
            if not new_variant.active:
                raise ValidationError(f'Variant "{new_variant.display_name}" is not active')

            old_variant_id = line.variant_id
            old_quantity = line.quantity
            new_quantity = quantity or old_quantity

            self.stock_store.adjust(session, old_variant_id, old_quantity)
            self.stock_store.adjust(session, new_variant.id, -new_quantity)

            line.variant_id = new_variant.id
            line.quantity = new_quantity
            line.unit_price = new_variant.sale_price
            line.subtotal = check_money(
                (Decimal(new_variant.sale_price) * new_quantity).quantize(CENTS), 'subtotal'
            )

            session.flush()
            self._recompute_total(session, sale)
            logger.info("Sale #%s: line #%s variant #%s x%s -> variant #%s x%s",
                        sale_id, line_id, old_variant_id, old_quantity, new_variant.id, new_quantity)

        return self._reload(sale_id)

    # ==================== HEADER ====================

    def update_notes(self, sale_id: int, notes: Optional[str]) -> Sale:
        with self._adjusting(sale_id, 'updating notes') as session:
            sale = self._lock_sale(session, sale_id)
            sale.notes = (notes or '').strip() or None
        return self._reload(sale_id)

    def update_created_at(self, sale_id: int, created_at: datetime) -> Sale:
        if not isinstance(created_at, datetime):
            raise ValidationError('created_at must be a datetime')
        with self._adjusting(sale_id, 'updating date') as session:
            sale = self._lock_sale(session, sale_id)
            sale.created_at = created_at
        return self._reload(sale_id)

    # ==================== PAYMENTS ====================

    def update_payment(self, sale_id: int, payment_id: int, amount=None, method=None) -> Sale:
        """Change the amount and/or method of a payment on a completed sale."""
        if amount is not None:
            amount = to_money(amount, 'amount')
            if amount <= 0:
                raise ValidationError('Payment amount must be greater than 0')
        if method is not None:
            try:
                method = PaymentMethod(normalize_payment_method(method))
            except ValueError as e:
                raise ValidationError(str(e))

        with self._adjusting(sale_id, 'updating payment') as session:
            self._lock_completed_sale(session, sale_id)
            payment = self.sale_repository.find_payment(session, sale_id, payment_id)
            if payment is None:
                raise NotFoundError(
                    f'Payment #{payment_id} not found on sale #{sale_id}',
                    payload={'sale_id': sale_id, 'payment_id': payment_id}
                )
            if amount is not None:
                payment.amount = amount
            if method is not None:
                payment.payment_method = method.value

        return self._reload(sale_id)

    # ==================== HELPERS ====================

    @contextmanager
    def _adjusting(self, sale_id: int, action: str):
        """Unit of work that maps store failures to PersistenceError."""
        try:
            with self.database.unit_of_work() as session:
                yield session
        except LedgerError:
            raise
        except SQLAlchemyError as e:
            logger.error("Error %s on sale #%s: %s", action, sale_id, e)
            raise PersistenceError(f'Error {action} on sale #{sale_id}', cause=e) from e

    def _lock_sale(self, session, sale_id: int) -> Sale:
        sale = session.query(Sale).filter(Sale.id == sale_id).with_for_update().first()
        if sale is None:
            raise NotFoundError(f'Sale #{sale_id} not found', payload={'sale_id': sale_id})
        return sale

    def _lock_completed_sale(self, session, sale_id: int) -> Sale:
        sale = self._lock_sale(session, sale_id)
        if sale.status != SaleStatus.COMPLETED:
            raise InvalidStateError(
                f'Only completed sales can be adjusted; sale #{sale_id} is {sale.status.value}',
                payload={'sale_id': sale_id}
            )
        return sale

    def _get_line(self, session, sale_id: int, line_id: int) -> SaleLine:
        line = self.sale_repository.find_line(session, sale_id, line_id)
        if line is None:
            raise NotFoundError(
                f'Line #{line_id} not found on sale #{sale_id}',
                payload={'sale_id': sale_id, 'line_id': line_id}
            )
        return line

    @staticmethod
    def _recompute_total(session, sale: Sale) -> None:
        total = session.query(
            func.coalesce(func.sum(SaleLine.subtotal), 0)
        ).filter(SaleLine.sale_id == sale.id).scalar()
        sale.total = check_money(Decimal(str(total)).quantize(CENTS), 'total')

    def _reload(self, sale_id: int) -> Sale:
        return self.sale_repository.find_by_id(sale_id)

