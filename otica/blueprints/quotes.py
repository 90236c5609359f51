"""Quotes blueprint for orçamento management and conversion."""
from flask import Blueprint, g, jsonify, request, current_app
from otica.database import get_session
from otica.middleware import require_login
from otica.exceptions import ValidationError
from otica.services.quote_service import (
    create_quote,
    get_quote,
    list_quotes,
    update_quote,
    delete_quote,
    convert_quote_to_sale
)
from otica.utils.request_data import json_body, snake_keys, pagination

quotes_bp = Blueprint('quotes', __name__, url_prefix='/api/quotes')


@quotes_bp.route('', methods=['GET'])
@require_login
def list_all():
    """List quotes (paginated, optional ?status=)."""
    limit, offset = pagination()
    quotes = list_quotes(get_session(), limit=limit, offset=offset, status=request.args.get('status'))
    return jsonify([quote.to_dict() for quote in quotes])


@quotes_bp.route('/<int:quote_id>', methods=['GET'])
@require_login
def detail(quote_id):
    """Quote with items and customer."""
    quote = get_quote(quote_id, get_session())
    return jsonify(quote.to_dict(with_items=True))


@quotes_bp.route('', methods=['POST'])
@require_login
def create():
    """Create a quote. Body: {quote: {...}, items: [...]}."""
    data = json_body()
    quote_data = data.get('quote')
    items = data.get('items')

    if not isinstance(quote_data, dict):
        raise ValidationError('Campo "quote" é obrigatório.')
    if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
        raise ValidationError('Campo "items" deve ser uma lista de itens.')

    quote = create_quote(
        snake_keys(quote_data),
        [snake_keys(item) for item in items],
        get_session(),
        user_id=g.user_id,
        valid_days=current_app.config.get('QUOTE_VALID_DAYS', 15)
    )
    return jsonify(quote.to_dict(with_items=True)), 201


@quotes_bp.route('/<int:quote_id>', methods=['PATCH'])
@require_login
def update(quote_id):
    """Update status, validity or notes."""
    fields = {
        key: value for key, value in snake_keys(json_body()).items()
        if key in ('status', 'valid_until', 'notes')
    }
    quote = update_quote(quote_id, get_session(), **fields)
    return jsonify(quote.to_dict())


@quotes_bp.route('/<int:quote_id>', methods=['DELETE'])
@require_login
def delete(quote_id):
    """Delete a quote and its items."""
    delete_quote(quote_id, get_session())
    return jsonify({'status': 'ok', 'message': 'Orçamento excluído com sucesso.'})


@quotes_bp.route('/<int:quote_id>/convert-to-sale', methods=['POST'])
@require_login
def convert_to_sale(quote_id):
    """Convert a quote into a sale. Body: {paymentMethod, paymentStatus, installments}."""
    payment_info = snake_keys(json_body())

    if not payment_info.get('payment_method'):
        raise ValidationError('Forma de pagamento é obrigatória.')

    sale = convert_quote_to_sale(quote_id, get_session(), payment_info={
        'payment_method': payment_info.get('payment_method'),
        'payment_status': payment_info.get('payment_status'),
        'installments': payment_info.get('installments'),
    }, max_installments=current_app.config['MAX_INSTALLMENTS'])
    return jsonify(sale.to_dict(with_items=True))
