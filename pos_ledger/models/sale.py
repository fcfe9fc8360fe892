"""Sale model."""
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Column, BigInteger, Text, Numeric, DateTime, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pos_ledger.database import Base, BigIntPK
import enum


class SaleStatus(enum.Enum):
    """Sale status enum."""
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Sale(Base):
    """
    Sale header.

    Created ``completed`` by the ledger; the only transition is
    ``completed -> cancelled``, and only cancelled sales can be deleted.
    """

    __tablename__ = 'sale'
    __table_args__ = (
        CheckConstraint('total >= 0', name='ck_sale_total_non_negative'),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    seller_id = Column(BigInteger, ForeignKey('app_user.id'), nullable=False, index=True)
    total = Column(Numeric(10, 2), nullable=False, default=0)
    status = Column(
        Enum(SaleStatus, name='sale_status', values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=SaleStatus.COMPLETED,
        index=True,
    )
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now,
                        server_default=func.now(), index=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    seller = relationship('AppUser', back_populates='sales')
    lines = relationship('SaleLine', back_populates='sale', order_by='SaleLine.id')
    payments = relationship('SalePayment', back_populates='sale', order_by='SalePayment.id')

    @property
    def is_cancelled(self):
        return self.status == SaleStatus.CANCELLED

    @property
    def amount_paid(self):
        """Sum of the payments recorded against the sale."""
        return sum((p.amount for p in self.payments), Decimal('0.00'))

    @property
    def balance_due(self):
        """Total minus amount paid (negative when overpaid)."""
        return (self.total or Decimal('0.00')) - self.amount_paid

    def __repr__(self):
        return f"<Sale(id={self.id}, total={self.total}, status={self.status.value})>"
