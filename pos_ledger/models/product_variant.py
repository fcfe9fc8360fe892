"""Product Variant model (stock is tracked per variant)."""
from datetime import datetime

from sqlalchemy import Column, BigInteger, Integer, String, Boolean, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pos_ledger.database import Base, BigIntPK


class ProductVariant(Base):
    """
    Sellable variant of a product (size, color, SKU...).

    ``stock`` has no floor: a sale may drive it below zero when recorded and
    physical inventory have drifted. Variants are deactivated, never deleted.
    """

    __tablename__ = 'product_variant'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    product_id = Column(BigInteger, ForeignKey('product.id'), nullable=False, index=True)
    sku = Column(String(50), nullable=True, unique=True)
    variant_name = Column(String(100), nullable=False)
    cost_price = Column(Numeric(10, 2), nullable=False, default=0, server_default='0')
    sale_price = Column(Numeric(10, 2), nullable=False, default=0, server_default='0')
    stock = Column(Integer, nullable=False, default=0, server_default='0')
    min_stock = Column(Integer, nullable=False, default=5, server_default='5')
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now,
                        server_default=func.now(), onupdate=datetime.now)

    # Relationships
    product = relationship('Product', back_populates='variants')

    @property
    def display_name(self):
        """Product name plus variant name, e.g. 'Hammer - 500g'."""
        if self.product is None:
            return self.variant_name
        if self.variant_name:
            return f"{self.product.name} - {self.variant_name}"
        return self.product.name

    @property
    def is_low_stock(self):
        return self.stock <= self.min_stock

    def __repr__(self):
        return f"<ProductVariant(id={self.id}, sku='{self.sku}', stock={self.stock})>"
