"""Repositories over the ledger tables."""
from pos_ledger.repositories.stock_store import StockStore
from pos_ledger.repositories.sale_repository import SaleRepository

__all__ = ['StockStore', 'SaleRepository']
