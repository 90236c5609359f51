"""Sales blueprint - direct sales, listing and cancellation."""
from flask import Blueprint, g, jsonify, current_app
from otica.database import get_session
from otica.middleware import require_login
from otica.exceptions import ValidationError
from otica.services.sales_service import create_sale, get_sale, list_sales, update_sale, cancel_sale
from otica.utils.request_data import json_body, snake_keys, pagination

sales_bp = Blueprint('sales', __name__, url_prefix='/api/sales')


@sales_bp.route('', methods=['GET'])
@require_login
def list_all():
    """List sales (paginated)."""
    limit, offset = pagination()
    sales = list_sales(get_session(), limit=limit, offset=offset)
    return jsonify([sale.to_dict() for sale in sales])


@sales_bp.route('/<int:sale_id>', methods=['GET'])
@require_login
def detail(sale_id):
    """Sale with items and receivables."""
    sale = get_sale(sale_id, get_session())
    return jsonify(sale.to_dict(with_items=True))


@sales_bp.route('', methods=['POST'])
@require_login
def create():
    """Create a direct sale. Body: {sale: {...}, items: [...]}."""
    data = json_body()
    sale_data = data.get('sale')
    items = data.get('items')

    if not isinstance(sale_data, dict):
        raise ValidationError('Campo "sale" é obrigatório.')
    if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
        raise ValidationError('Campo "items" deve ser uma lista de itens.')

    sale = create_sale(
        snake_keys(sale_data),
        [snake_keys(item) for item in items],
        get_session(),
        user_id=g.user_id,
        max_installments=current_app.config['MAX_INSTALLMENTS']
    )
    return jsonify(sale.to_dict(with_items=True)), 201


@sales_bp.route('/<int:sale_id>', methods=['PATCH'])
@require_login
def update(sale_id):
    """Update payment status or notes."""
    fields = {
        key: value for key, value in snake_keys(json_body()).items()
        if key in ('payment_status', 'notes')
    }
    sale = update_sale(sale_id, get_session(), **fields)
    return jsonify(sale.to_dict())


@sales_bp.route('/<int:sale_id>/cancel', methods=['POST'])
@require_login
def cancel(sale_id):
    """Cancel a sale and return its items to stock."""
    sale = cancel_sale(sale_id, get_session())
    return jsonify(sale.to_dict(with_items=True))
