"""
Reports blueprint.

Read-only totals over completed sales:
- Daily and monthly totals
- Per-seller stats
- Payment method breakdown
- Top selling variants and low stock
"""
from datetime import date, timedelta

from flask import Blueprint, current_app, jsonify, request

from pos_ledger.blueprints.sales import parse_date
from pos_ledger.database import get_database
from pos_ledger.exceptions import ValidationError
from pos_ledger.services.report_service import ReportService
from pos_ledger.utils.serializers import money, variant_to_dict


reports_bp = Blueprint('reports', __name__, url_prefix='/reports')


def _reports() -> ReportService:
    return ReportService(get_database())


@reports_bp.route('/daily')
def daily():
    """Total and count of completed sales for one day (default: today)."""
    day = parse_date(request.args.get('date'), 'date') or date.today()
    service = _reports()
    return jsonify({
        'date': day.isoformat(),
        'total': money(service.daily_total(day)),
        'count': service.daily_count(day),
    })


@reports_bp.route('/monthly')
def monthly():
    """Monthly stats plus the per-day breakdown (default: current month)."""
    today = date.today()
    year = request.args.get('year', today.year, type=int)
    month = request.args.get('month', today.month, type=int)
    if not 1 <= month <= 12:
        raise ValidationError('month must be between 1 and 12')

    service = _reports()
    stats = service.monthly_stats(year, month)
    breakdown = service.daily_breakdown(year, month)

    return jsonify({
        'year': year,
        'month': month,
        'count': stats.sales_count,
        'total': money(stats.total),
        'average': money(stats.average),
        'maximum': money(stats.maximum),
        'minimum': money(stats.minimum),
        'days': {str(day): money(total) for day, total in breakdown.items()},
    })


@reports_bp.route('/sellers/<int:seller_id>')
def seller(seller_id: int):
    stats = _reports().seller_stats(seller_id)
    return jsonify({
        'seller_id': stats.seller_id,
        'seller_name': stats.seller_name,
        'count': stats.sales_count,
        'total': money(stats.sales_total),
        'average': money(stats.average_sale),
    })


@reports_bp.route('/payment-methods')
def payment_methods():
    start = parse_date(request.args.get('from'), 'from')
    end = parse_date(request.args.get('to'), 'to')
    totals = _reports().payment_method_totals(start, end)
    start = start or end
    return jsonify({
        'from': start.isoformat() if start else None,
        'to': (end or start).isoformat() if start else None,
        'totals': {method.value: money(total) for method, total in totals.items()},
    })


@reports_bp.route('/top-variants')
def top_variants():
    """
    Variants ranked by units sold.

    Optional period: ``year`` and ``month`` for one month, or ``from``/``to``
    dates. Without a period the ranking covers every completed sale.
    """
    limit = request.args.get('limit', current_app.config.get('TOP_VARIANTS_LIMIT', 10), type=int)
    if limit <= 0:
        raise ValidationError('limit must be greater than 0')

    year = request.args.get('year', type=int)
    month = request.args.get('month', type=int)
    if year is not None or month is not None:
        if year is None or month is None or not 1 <= month <= 12:
            raise ValidationError('year and month must be given together, month between 1 and 12')
        start = date(year, month, 1)
        end = date(year + month // 12, month % 12 + 1, 1) - timedelta(days=1)
    else:
        start = parse_date(request.args.get('from'), 'from')
        end = parse_date(request.args.get('to'), 'to')

    rows = _reports().top_selling_variants(limit, start, end)
    return jsonify({
        'from': (start or end).isoformat() if (start or end) else None,
        'to': (end or start).isoformat() if (start or end) else None,
        'variants': [
            {
                'variant_id': row.variant_id,
                'name': row.display_name,
                'quantity': row.quantity,
                'average_price': money(row.average_price),
                'amount': money(row.amount),
            }
            for row in rows
        ]
    })


@reports_bp.route('/low-stock')
def low_stock():
    variants = _reports().low_stock()
    return jsonify({
        'variants': [variant_to_dict(variant) for variant in variants],
        'count': len(variants),
    })
