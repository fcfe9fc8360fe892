"""Sale Payment model for split payments."""
from datetime import datetime

from sqlalchemy import Column, BigInteger, String, Numeric, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from pos_ledger.database import Base, BigIntPK
import enum


class PaymentMethod(enum.Enum):
    """Payment method enum."""
    CASH = "cash"
    DEBIT = "debit"
    CREDIT = "credit"
    TRANSFER = "transfer"
    WALLET = "wallet"
    STORE_CREDIT = "store_credit"
    OTHER = "other"


def normalize_payment_method(value) -> str:
    """
    Normalize payment method value to string for DB storage.

    Args:
        value: PaymentMethod enum or string (case-insensitive, '-' or ' '
            accepted in place of '_')

    Returns:
        str: the PaymentMethod value, e.g. 'store_credit'

    Raises:
        ValueError: If value is not a known payment method
    """
    if isinstance(value, PaymentMethod):
        return value.value

    if isinstance(value, str):
        normalized = value.strip().lower().replace('-', '_').replace(' ', '_')
        for method in PaymentMethod:
            if normalized in (method.value, method.name.lower()):
                return method.value

    allowed = ', '.join(m.value for m in PaymentMethod)
    raise ValueError(f"Invalid payment method: {value!r}. Must be one of: {allowed}.")


class SalePayment(Base):
    """
    Sale Payment - Individual payment for a sale.

    Several payments may cover one sale (e.g. cash + debit). Their sum is
    not forced to match the sale total.
    """

    __tablename__ = 'sale_payment'
    __table_args__ = (
        CheckConstraint('amount > 0', name='ck_sale_payment_amount_positive'),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    sale_id = Column(BigInteger, ForeignKey('sale.id'), nullable=False, index=True)
    payment_method = Column(String(20), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    reference = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now)

    # Relationships
    sale = relationship('Sale', back_populates='payments')

    @property
    def method(self) -> PaymentMethod:
        return PaymentMethod(self.payment_method)

    def __repr__(self):
        return f"<SalePayment(id={self.id}, sale_id={self.sale_id}, method={self.payment_method}, amount={self.amount})>"
