"""
JSON serialization helpers for ledger objects.

Money is rendered as a fixed two-decimal string and timestamps as ISO 8601;
no locale formatting is applied.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Optional, Union

CENTS = Decimal('0.01')


def money(value: Union[Decimal, int, float, str, None]) -> str:
    """
    Render an amount as a two-decimal string.

    Examples:
        money(Decimal('300')) -> "300.00"
        money(None) -> "0.00"
    """
    if value is None:
        return '0.00'
    return str(Decimal(str(value)).quantize(CENTS))


def iso(value: Optional[Union[date, datetime]]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def variant_to_dict(variant) -> Dict[str, Any]:
    return {
        'id': variant.id,
        'product_id': variant.product_id,
        'sku': variant.sku,
        'name': variant.display_name,
        'sale_price': money(variant.sale_price),
        'stock': variant.stock,
        'min_stock': variant.min_stock,
        'active': variant.active,
    }


def line_to_dict(line) -> Dict[str, Any]:
    return {
        'id': line.id,
        'variant_id': line.variant_id,
        'variant_name': line.variant.display_name if line.variant is not None else None,
        'quantity': line.quantity,
        'unit_price': money(line.unit_price),
        'subtotal': money(line.subtotal),
    }


def payment_to_dict(payment) -> Dict[str, Any]:
    return {
        'id': payment.id,
        'method': payment.payment_method,
        'amount': money(payment.amount),
        'reference': payment.reference,
    }


def sale_to_dict(sale, include_details: bool = True) -> Dict[str, Any]:
    data = {
        'id': sale.id,
        'seller_id': sale.seller_id,
        'seller_name': sale.seller.display_name if sale.seller is not None else None,
        'status': sale.status.value,
        'total': money(sale.total),
        'notes': sale.notes,
        'created_at': iso(sale.created_at),
        'cancelled_at': iso(sale.cancelled_at),
    }
    if include_details:
        data['lines'] = [line_to_dict(line) for line in sale.lines]
        data['payments'] = [payment_to_dict(payment) for payment in sale.payments]
        data['amount_paid'] = money(sale.amount_paid)
        data['balance_due'] = money(sale.balance_due)
    return data
