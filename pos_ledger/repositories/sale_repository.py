"""Sale repository - sale headers, lines and payments."""
from contextlib import contextmanager
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload, joinedload

from pos_ledger.database import Database
from pos_ledger.models import (
    Sale, SaleLine, SalePayment, SaleStatus, ProductVariant
)


def day_bounds(start: date, end: Optional[date] = None):
    """Return [start 00:00, day after end 00:00) as datetimes."""
    end = end or start
    return (
        datetime.combine(start, time.min),
        datetime.combine(end + timedelta(days=1), time.min),
    )


def month_bounds(year: int, month: int):
    """Return [first day of month 00:00, first day of next month 00:00)."""
    start = datetime(year, month, 1)
    if month == 12:
        end = datetime(year + 1, 1, 1)
    else:
        end = datetime(year, month + 1, 1)
    return start, end


class SaleRepository:
    """
    Persistence for sales.

    Write methods take the caller's session (the ledger's unit of work) and
    never commit. Read methods open a short-lived session when none is given.
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

    @staticmethod
    def _hydrated(query):
        return query.options(
            selectinload(Sale.lines).joinedload(SaleLine.variant).joinedload(ProductVariant.product),
            selectinload(Sale.payments),
            joinedload(Sale.seller),
        )

    # ==================== WRITES ====================

    def insert_header(self, session: Session, draft) -> int:
        """Insert a completed sale header and return its new id."""
        sale = Sale(
            seller_id=draft.seller_id,
            total=draft.total,
            status=SaleStatus.COMPLETED,
            notes=draft.notes,
            created_at=datetime.now(),
        )
        session.add(sale)
        session.flush()
        return sale.id

    def insert_line(self, session: Session, sale_id: int, line) -> int:
        sale_line = SaleLine(
            sale_id=sale_id,
            variant_id=line.variant_id,
            quantity=line.quantity,
            unit_price=line.unit_price,
            subtotal=line.subtotal,
        )
        session.add(sale_line)
        session.flush()
        return sale_line.id

    def insert_payment(self, session: Session, sale_id: int, payment) -> int:
        sale_payment = SalePayment(
            sale_id=sale_id,
            payment_method=payment.method.value,
            amount=payment.amount,
            reference=payment.reference,
        )
        session.add(sale_payment)
        session.flush()
        return sale_payment.id

    def set_status(self, session: Session, sale_id: int, status: SaleStatus) -> bool:
        values = {Sale.status: status}
        if status == SaleStatus.CANCELLED:
            values[Sale.cancelled_at] = datetime.now()
        updated = session.query(Sale).filter(Sale.id == sale_id).update(
            values, synchronize_session='evaluate'
        )
        return bool(updated)

    def delete_cascade(self, session: Session, sale_id: int) -> bool:
        """Delete payments, then lines, then the header."""
        session.query(SalePayment).filter(
            SalePayment.sale_id == sale_id
        ).delete(synchronize_session=False)
        session.query(SaleLine).filter(
            SaleLine.sale_id == sale_id
        ).delete(synchronize_session=False)
        deleted = session.query(Sale).filter(
            Sale.id == sale_id
        ).delete(synchronize_session=False)
        return bool(deleted)

    # ==================== READS ====================

    def find_by_id(self, sale_id: int, session: Optional[Session] = None) -> Optional[Sale]:
        """Sale with its lines (and their variants) and payments, or None."""
        with self._reading(session) as s:
            return self._hydrated(s.query(Sale)).filter(Sale.id == sale_id).first()

    def find_line(self, session: Session, sale_id: int, line_id: int) -> Optional[SaleLine]:
        return session.query(SaleLine).filter(
            SaleLine.id == line_id,
            SaleLine.sale_id == sale_id
        ).first()

    def find_payment(self, session: Session, sale_id: int, payment_id: int) -> Optional[SalePayment]:
        return session.query(SalePayment).filter(
            SalePayment.id == payment_id,
            SalePayment.sale_id == sale_id
        ).first()

    def list_by_status(self, status: SaleStatus, session: Optional[Session] = None) -> List[Sale]:
        with self._reading(session) as s:
            return self._hydrated(s.query(Sale)).filter(
                Sale.status == status
            ).order_by(Sale.created_at.desc(), Sale.id.desc()).all()

    def list_by_date_range(self, start: date, end: date, session: Optional[Session] = None) -> List[Sale]:
        """Sales created between two dates, both inclusive."""
        start_dt, end_dt = day_bounds(start, end)
        with self._reading(session) as s:
            return self._hydrated(s.query(Sale)).filter(
                Sale.created_at >= start_dt,
                Sale.created_at < end_dt
            ).order_by(Sale.created_at.desc(), Sale.id.desc()).all()

    def list_by_date(self, day: date, session: Optional[Session] = None) -> List[Sale]:
        return self.list_by_date_range(day, day, session)

    def list_by_month(self, year: int, month: int, session: Optional[Session] = None) -> List[Sale]:
        start_dt, end_dt = month_bounds(year, month)
        with self._reading(session) as s:
            return self._hydrated(s.query(Sale)).filter(
                Sale.created_at >= start_dt,
                Sale.created_at < end_dt
            ).order_by(Sale.created_at.desc(), Sale.id.desc()).all()

    def list_by_seller(self, seller_id: int, session: Optional[Session] = None) -> List[Sale]:
        with self._reading(session) as s:
            return self._hydrated(s.query(Sale)).filter(
                Sale.seller_id == seller_id
            ).order_by(Sale.created_at.desc(), Sale.id.desc()).all()

    def list_all(self, limit: Optional[int] = None, offset: int = 0,
                 session: Optional[Session] = None) -> List[Sale]:
        with self._reading(session) as s:
            query = self._hydrated(s.query(Sale)).order_by(Sale.created_at.desc(), Sale.id.desc())
            if limit is not None:
                query = query.limit(limit).offset(offset)
            return query.all()

    def count(self, status: Optional[SaleStatus] = None, session: Optional[Session] = None) -> int:
        with self._reading(session) as s:
            query = s.query(Sale)
            if status is not None:
                query = query.filter(Sale.status == status)
            return query.count()
