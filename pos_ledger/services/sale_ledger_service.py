"""
Sale ledger service - creates, cancels and deletes sales.

Every operation runs inside one unit of work spanning the sale rows and the
stock adjustments: either all of it is committed or nothing is.

States of a sale:
    completed --cancel--> cancelled --delete--> (removed)
"""
import logging

from sqlalchemy.exc import SQLAlchemyError

from pos_ledger.database import Database
from pos_ledger.exceptions import (
    LedgerError, NotFoundError, InvalidStateError, AlreadyCancelledError, PersistenceError
)
from pos_ledger.models import Sale, SaleStatus
from pos_ledger.repositories import SaleRepository, StockStore
from pos_ledger.services.sale_draft_service import SaleDraft

logger = logging.getLogger(__name__)


class SaleLedgerService:
    """The only component that mutates stock as a side effect of a sale."""

    def __init__(self, database: Database, stock_store: StockStore = None,
                 sale_repository: SaleRepository = None):
        self.database = database
        self.stock_store = stock_store or StockStore(database)
        self.sale_repository = sale_repository or SaleRepository(database)

    def create(self, draft: SaleDraft) -> Sale:
        """
        Persist a sale with its lines and payments, decrementing stock.

        Steps (one unit of work):
        1. Insert the header (status completed)
        2. For each line: insert the row, then adjust stock by -quantity
        3. Insert each payment (never touches stock)
        4. Commit and return the sale re-read from the store

        Raises:
            NotFoundError: If a referenced variant does not exist
            PersistenceError: If the store rejects any read/write
        """
        if not isinstance(draft, SaleDraft):
            raise TypeError(f'create() expects a SaleDraft, got {type(draft).__name__}')

        if not draft.is_balanced:
            logger.warning(
                "Sale draft payments (%s) do not match total (%s) for seller #%s",
                draft.payments_total, draft.total, draft.seller_id
            )

        try:
            with self.database.unit_of_work() as session:
                sale_id = self.sale_repository.insert_header(session, draft)

                for line in draft.lines:
                    self.sale_repository.insert_line(session, sale_id, line)
                    self.stock_store.adjust(session, line.variant_id, -line.quantity)

                for payment in draft.payments:
                    self.sale_repository.insert_payment(session, sale_id, payment)

        except LedgerError:
            logger.warning("Sale creation aborted for seller #%s", draft.seller_id, exc_info=True)
            raise
        except SQLAlchemyError as e:
            logger.error("Error creating sale for seller #%s: %s", draft.seller_id, e)
            raise PersistenceError('Error creating sale', cause=e) from e

        logger.info("Sale #%s created: %s line(s), total %s", sale_id, len(draft.lines), draft.total)
        return self.get(sale_id)

    def cancel(self, sale_id: int) -> None:
        """
        Cancel a completed sale and give its stock back.

        Stock is restored with the quantity stored on each line. Payments are
        left untouched.

        Raises:
            NotFoundError: If the sale does not exist
            AlreadyCancelledError: If the sale is already cancelled
            PersistenceError: If the store rejects any read/write
        """
        try:
            with self.database.unit_of_work() as session:
                sale = self.sale_repository.find_by_id(sale_id, session=session)
                if sale is None:
                    raise NotFoundError(f'Sale #{sale_id} not found', payload={'sale_id': sale_id})
                if sale.status == SaleStatus.CANCELLED:
                    raise AlreadyCancelledError(sale_id)

                lines = [(line.variant_id, line.quantity) for line in sale.lines]

                self.sale_repository.set_status(session, sale_id, SaleStatus.CANCELLED)
                for variant_id, quantity in lines:
                    self.stock_store.adjust(session, variant_id, quantity)

        except LedgerError:
            raise
        except SQLAlchemyError as e:
            logger.error("Error cancelling sale #%s: %s", sale_id, e)
            raise PersistenceError(f'Error cancelling sale #{sale_id}', cause=e) from e

        logger.info("Sale #%s cancelled, stock restored for %s line(s)", sale_id, len(lines))

    def delete(self, sale_id: int) -> None:
        """
        Permanently remove a cancelled sale (payments, lines, then header).

        Stock is not touched: it was already restored by ``cancel``.

        Raises:
            NotFoundError: If the sale does not exist
            InvalidStateError: If the sale is not cancelled
            PersistenceError: If the store rejects any read/write
        """
        try:
            with self.database.unit_of_work() as session:
                sale = self.sale_repository.find_by_id(sale_id, session=session)
                if sale is None:
                    raise NotFoundError(f'Sale #{sale_id} not found', payload={'sale_id': sale_id})
                if sale.status != SaleStatus.CANCELLED:
                    raise InvalidStateError(
                        f'Only cancelled sales can be deleted; sale #{sale_id} is {sale.status.value}',
                        payload={'sale_id': sale_id}
                    )

                self.sale_repository.delete_cascade(session, sale_id)

        except LedgerError:
            raise
        except SQLAlchemyError as e:
            logger.error("Error deleting sale #%s: %s", sale_id, e)
            raise PersistenceError(f'Error deleting sale #{sale_id}', cause=e) from e

        logger.info("Sale #%s deleted", sale_id)

    def get(self, sale_id: int) -> Sale:
        """Fully hydrated sale, or NotFoundError."""
        try:
            sale = self.sale_repository.find_by_id(sale_id)
        except SQLAlchemyError as e:
            raise PersistenceError(f'Error reading sale #{sale_id}', cause=e) from e
        if sale is None:
            raise NotFoundError(f'Sale #{sale_id} not found', payload={'sale_id': sale_id})
        return sale
