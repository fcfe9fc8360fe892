"""Sales blueprint - JSON endpoints over the sale ledger."""
from datetime import date, datetime
from typing import Optional

from flask import Blueprint, jsonify, request

from pos_ledger.database import get_database
from pos_ledger.exceptions import ValidationError
from pos_ledger.models import SaleStatus
from pos_ledger.repositories import SaleRepository
from pos_ledger.services.sale_adjustment_service import SaleAdjustmentService
from pos_ledger.services.sale_draft_service import draft_from_payload
from pos_ledger.services.sale_ledger_service import SaleLedgerService
from pos_ledger.utils.serializers import sale_to_dict


sales_bp = Blueprint('sales', __name__, url_prefix='/sales')


def _ledger() -> SaleLedgerService:
    return SaleLedgerService(get_database())


def _adjustments() -> SaleAdjustmentService:
    return SaleAdjustmentService(get_database())


def _json_body() -> dict:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        raise ValidationError('Request body must be a JSON object')
    return payload


def parse_date(value: Optional[str], field_name: str) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f'{field_name} must be a date in YYYY-MM-DD format')


def parse_datetime(value: Optional[str], field_name: str) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        raise ValidationError(f'{field_name} must be an ISO 8601 datetime')


@sales_bp.route('', methods=['POST'])
def create_sale():
    """Create a sale from a fully formed draft."""
    draft = draft_from_payload(_json_body())
    sale = _ledger().create(draft)
    return jsonify(sale_to_dict(sale)), 201


@sales_bp.route('', methods=['GET'])
def list_sales():
    """List sales filtered by status, date range or seller (newest first)."""
    repository = SaleRepository(get_database())

    status = request.args.get('status')
    seller_id = request.args.get('seller_id', type=int)
    start = parse_date(request.args.get('from'), 'from')
    end = parse_date(request.args.get('to'), 'to')

    if status:
        try:
            sales = repository.list_by_status(SaleStatus(status.lower()))
        except ValueError:
            raise ValidationError(f'Unknown status: {status}')
    elif start or end:
        sales = repository.list_by_date_range(start or end, end or start)
    elif seller_id:
        sales = repository.list_by_seller(seller_id)
    else:
        limit = request.args.get('limit', 50, type=int)
        offset = request.args.get('offset', 0, type=int)
        sales = repository.list_all(limit=limit, offset=offset)

    # Filters can be combined; the first one narrows the query, the rest the result
    if status and (start or end):
        start_dt = start or end
        end_dt = end or start
        sales = [s for s in sales if start_dt <= s.created_at.date() <= end_dt]
    if seller_id and (status or start or end):
        sales = [s for s in sales if s.seller_id == seller_id]

    return jsonify({
        'sales': [sale_to_dict(sale, include_details=False) for sale in sales],
        'count': len(sales),
    })


@sales_bp.route('/<int:sale_id>', methods=['GET'])
def get_sale(sale_id: int):
    return jsonify(sale_to_dict(_ledger().get(sale_id)))


@sales_bp.route('/<int:sale_id>/cancel', methods=['POST'])
def cancel_sale(sale_id: int):
    """Cancel a sale and restore its stock."""
    ledger = _ledger()
    ledger.cancel(sale_id)
    return jsonify(sale_to_dict(ledger.get(sale_id)))


@sales_bp.route('/<int:sale_id>', methods=['DELETE'])
def delete_sale(sale_id: int):
    """Permanently delete a cancelled sale."""
    _ledger().delete(sale_id)
    return jsonify({'status': 'ok', 'message': f'Sale #{sale_id} deleted', 'sale_id': sale_id})


@sales_bp.route('/<int:sale_id>', methods=['PATCH'])
def update_sale(sale_id: int):
    """Edit notes and/or date of a sale."""
    payload = _json_body()
    service = _adjustments()
    sale = None

    if 'notes' in payload:
        sale = service.update_notes(sale_id, payload.get('notes'))
    if 'created_at' in payload:
        created_at = parse_datetime(payload.get('created_at'), 'created_at')
        if created_at is None:
            raise ValidationError('created_at cannot be empty')
        sale = service.update_created_at(sale_id, created_at)

    if sale is None:
        raise ValidationError('Nothing to update: send notes and/or created_at')
    return jsonify(sale_to_dict(sale))


@sales_bp.route('/<int:sale_id>/lines/<int:line_id>', methods=['PATCH'])
def update_sale_line(sale_id: int, line_id: int):
    """Change a line's quantity (0 removes it) or swap its variant."""
    payload = _json_body()
    service = _adjustments()

    if payload.get('variant_id') is not None:
        sale = service.swap_line_variant(sale_id, line_id, payload['variant_id'], payload.get('quantity'))
    elif 'quantity' in payload:
        sale = service.update_line_quantity(sale_id, line_id, payload['quantity'])
    else:
        raise ValidationError('Nothing to update: send quantity and/or variant_id')
    return jsonify(sale_to_dict(sale))


@sales_bp.route('/<int:sale_id>/payments/<int:payment_id>', methods=['PATCH'])
def update_sale_payment(sale_id: int, payment_id: int):
    payload = _json_body()
    if payload.get('amount') is None and payload.get('method') is None:
        raise ValidationError('Nothing to update: send amount and/or method')
    sale = _adjustments().update_payment(
        sale_id, payment_id,
        amount=payload.get('amount'),
        method=payload.get('method'),
    )
    return jsonify(sale_to_dict(sale))
