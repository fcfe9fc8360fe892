"""AppUser model - store staff who ring up sales."""
from datetime import datetime

from sqlalchemy import Column, String, Boolean, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from pos_ledger.database import Base, BigIntPK


class AppUser(Base):
    """AppUser model (seller)."""

    __tablename__ = 'app_user'

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    username = Column(String(50), nullable=False, unique=True)
    full_name = Column(String(100), nullable=True)
    role = Column(String(20), nullable=False, default='seller')  # admin, seller
    active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=datetime.now, server_default=func.now())

    # Relationships
    sales = relationship('Sale', back_populates='seller')

    @property
    def display_name(self):
        return self.full_name or self.username

    def __repr__(self):
        return f"<AppUser(id={self.id}, username='{self.username}')>"
