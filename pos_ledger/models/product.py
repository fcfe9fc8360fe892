"""Product model."""
from datetime import datetime

from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pos_ledger.database import Base, BigIntPK


class Product(Base):
    """Product model - parent of the sellable variants."""

    __tablename__ = 'product'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    code = Column(String(50), nullable=True, unique=True)
    name = Column(String(200), nullable=False, index=True)
    brand = Column(String(100), nullable=True)
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now, server_default=func.now())

    # Relationships
    variants = relationship('ProductVariant', back_populates='product', order_by='ProductVariant.id')

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', code='{self.code}')>"
