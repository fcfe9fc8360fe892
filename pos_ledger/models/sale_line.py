"""Sale Line model."""
from datetime import datetime

from sqlalchemy import Column, BigInteger, Integer, Numeric, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from pos_ledger.database import Base, BigIntPK


class SaleLine(Base):
    """Sale Line (one variant, quantity and the unit price captured at sale time)."""

    __tablename__ = 'sale_line'
    __table_args__ = (
        CheckConstraint('quantity > 0', name='ck_sale_line_quantity_positive'),
        CheckConstraint('unit_price >= 0', name='ck_sale_line_unit_price_non_negative'),
    )

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    sale_id = Column(BigInteger, ForeignKey('sale.id'), nullable=False, index=True)
    variant_id = Column(BigInteger, ForeignKey('product_variant.id'), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    subtotal = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now)

    # Relationships
    sale = relationship('Sale', back_populates='lines')
    variant = relationship('ProductVariant')

    def __repr__(self):
        return f"<SaleLine(id={self.id}, variant_id={self.variant_id}, quantity={self.quantity})>"
