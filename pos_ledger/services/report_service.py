"""
Report service - read-only aggregations over the sale ledger.

Only completed sales count towards totals; cancelled sales are ignored.
"""
from collections import OrderedDict
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, List, NamedTuple, Optional

from sqlalchemy import func, desc

from pos_ledger.database import Database
from pos_ledger.models import (
    AppUser, Product, ProductVariant, Sale, SaleLine, SalePayment, SaleStatus, PaymentMethod
)
from pos_ledger.repositories import StockStore
from pos_ledger.repositories.sale_repository import day_bounds, month_bounds
from pos_ledger.services.sale_draft_service import CENTS


def _money(value) -> Decimal:
    if value is None:
        return Decimal('0.00')
    return Decimal(str(value)).quantize(CENTS)


class SellerStats(NamedTuple):
    seller_id: int
    seller_name: Optional[str]
    sales_count: int
    sales_total: Decimal

    @property
    def average_sale(self) -> Decimal:
        if self.sales_count == 0:
            return Decimal('0.00')
        return (self.sales_total / self.sales_count).quantize(CENTS)


class MonthlyStats(NamedTuple):
    sales_count: int
    total: Decimal
    average: Decimal
    maximum: Decimal
    minimum: Decimal


class VariantSales(NamedTuple):
    variant_id: int
    product_name: str
    variant_name: str
    quantity: int
    amount: Decimal

    @property
    def average_price(self) -> Decimal:
        """Amount over units sold (the unit price when it never changed)."""
        if self.quantity == 0:
            return Decimal('0.00')
        return (self.amount / self.quantity).quantize(CENTS)

    @property
    def display_name(self) -> str:
        if self.variant_name:
            return f"{self.product_name} - {self.variant_name}"
        return self.product_name


class ReportService:
    """Daily/monthly totals, seller stats and product rankings."""

    def __init__(self, database: Database, stock_store: StockStore = None):
        self.database = database
        self.stock_store = stock_store or StockStore(database)

    def _completed(self, session, *columns):
        return session.query(*columns).filter(Sale.status == SaleStatus.COMPLETED)

    @staticmethod
    def _within(query, start: Optional[date], end: Optional[date]):
        """Restrict to sales created between two dates (inclusive); one bound means one day."""
        start = start or end
        if start is None:
            return query
        start_dt, end_dt = day_bounds(start, end or start)
        return query.filter(Sale.created_at >= start_dt, Sale.created_at < end_dt)

    # ==================== TOTALS ====================

    def daily_total(self, day: date) -> Decimal:
        start_dt, end_dt = day_bounds(day)
        with self.database.session() as session:
            total = self._completed(session, func.coalesce(func.sum(Sale.total), 0)).filter(
                Sale.created_at >= start_dt,
                Sale.created_at < end_dt
            ).scalar()
        return _money(total)

    def daily_count(self, day: date) -> int:
        start_dt, end_dt = day_bounds(day)
        with self.database.session() as session:
            return self._completed(session, func.count(Sale.id)).filter(
                Sale.created_at >= start_dt,
                Sale.created_at < end_dt
            ).scalar() or 0

    def monthly_total(self, year: int, month: int) -> Decimal:
        start_dt, end_dt = month_bounds(year, month)
        with self.database.session() as session:
            total = self._completed(session, func.coalesce(func.sum(Sale.total), 0)).filter(
                Sale.created_at >= start_dt,
                Sale.created_at < end_dt
            ).scalar()
        return _money(total)

    def monthly_count(self, year: int, month: int) -> int:
        start_dt, end_dt = month_bounds(year, month)
        with self.database.session() as session:
            return self._completed(session, func.count(Sale.id)).filter(
                Sale.created_at >= start_dt,
                Sale.created_at < end_dt
            ).scalar() or 0

    def monthly_stats(self, year: int, month: int) -> MonthlyStats:
        """Count, total, average, largest and smallest completed sale of a month."""
        start_dt, end_dt = month_bounds(year, month)
        with self.database.session() as session:
            row = self._completed(
                session,
                func.count(Sale.id),
                func.sum(Sale.total),
                func.avg(Sale.total),
                func.max(Sale.total),
                func.min(Sale.total),
            ).filter(
                Sale.created_at >= start_dt,
                Sale.created_at < end_dt
            ).one()

        count, total, average, maximum, minimum = row
        return MonthlyStats(
            sales_count=count or 0,
            total=_money(total),
            average=_money(average),
            maximum=_money(maximum),
            minimum=_money(minimum),
        )

    def daily_breakdown(self, year: int, month: int) -> Dict[int, Decimal]:
        """Completed sales total per day of month, only days with sales."""
        start_dt, end_dt = month_bounds(year, month)
        with self.database.session() as session:
            rows = self._completed(session, Sale.created_at, Sale.total).filter(
                Sale.created_at >= start_dt,
                Sale.created_at < end_dt
            ).order_by(Sale.created_at).all()

        breakdown = OrderedDict()
        for created_at, total in rows:
            breakdown[created_at.day] = breakdown.get(created_at.day, Decimal('0.00')) + _money(total)
        return dict(breakdown)

    def grand_total(self) -> Decimal:
        with self.database.session() as session:
            total = self._completed(session, func.coalesce(func.sum(Sale.total), 0)).scalar()
        return _money(total)

    # ==================== SELLERS ====================

    def seller_stats(self, seller_id: int) -> SellerStats:
        with self.database.session() as session:
            seller = session.get(AppUser, seller_id)
            count, total = self._completed(
                session,
                func.count(Sale.id),
                func.coalesce(func.sum(Sale.total), 0)
            ).filter(Sale.seller_id == seller_id).one()

        return SellerStats(
            seller_id=seller_id,
            seller_name=seller.display_name if seller else None,
            sales_count=count or 0,
            sales_total=_money(total),
        )

    # ==================== PAYMENTS ====================

    def payment_method_totals(self, start: Optional[date] = None,
                              end: Optional[date] = None) -> Dict[PaymentMethod, Decimal]:
        """Sum of payments per method on completed sales, optionally by date range."""
        with self.database.session() as session:
            query = session.query(
                SalePayment.payment_method,
                func.sum(SalePayment.amount)
            ).join(
                Sale, Sale.id == SalePayment.sale_id
            ).filter(
                Sale.status == SaleStatus.COMPLETED
            )
            query = self._within(query, start, end)
            rows = query.group_by(SalePayment.payment_method).all()

        return {PaymentMethod(method): _money(total) for method, total in rows}

    # ==================== PRODUCTS ====================

    def top_selling_variants(self, limit: Optional[int] = 10, start: Optional[date] = None,
                             end: Optional[date] = None) -> List[VariantSales]:
        """Variants ranked by units sold on completed sales, optionally by date range."""
        with self.database.session() as session:
            query = session.query(
                ProductVariant.id,
                Product.name,
                ProductVariant.variant_name,
                func.sum(SaleLine.quantity).label('total_quantity'),
                func.sum(SaleLine.subtotal).label('total_amount')
            ).join(
                SaleLine, SaleLine.variant_id == ProductVariant.id
            ).join(
                Product, Product.id == ProductVariant.product_id
            ).join(
                Sale, Sale.id == SaleLine.sale_id
            ).filter(
                Sale.status == SaleStatus.COMPLETED
            )
            rows = self._within(query, start, end).group_by(
                ProductVariant.id,
                Product.name,
                ProductVariant.variant_name
            ).order_by(
                desc('total_quantity'),
                ProductVariant.id
            ).limit(limit).all()

        return [
            VariantSales(
                variant_id=row[0],
                product_name=row[1],
                variant_name=row[2],
                quantity=int(row[3] or 0),
                amount=_money(row[4]),
            )
            for row in rows
        ]

    def monthly_variant_sales(self, year: int, month: int) -> List[VariantSales]:
        """Every variant sold in a month with units, average price and amount."""
        start_dt, end_dt = month_bounds(year, month)
        return self.top_selling_variants(
            limit=None,
            start=start_dt.date(),
            end=(end_dt - timedelta(days=1)).date(),
        )

    def units_sold(self, variant_id: int) -> int:
        with self.database.session() as session:
            total = session.query(
                func.coalesce(func.sum(SaleLine.quantity), 0)
            ).join(
                Sale, Sale.id == SaleLine.sale_id
            ).filter(
                SaleLine.variant_id == variant_id,
                Sale.status == SaleStatus.COMPLETED
            ).scalar()
        return int(total or 0)

    def low_stock(self) -> List[ProductVariant]:
        return self.stock_store.list_low_stock()
