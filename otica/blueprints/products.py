"""Products blueprint - catalog, stock adjustments and low-stock alerts."""
from flask import Blueprint, jsonify, request
from otica.database import get_session
from otica.middleware import require_login
from otica.services.product_service import (
    list_products,
    search_products,
    get_low_stock_products,
    get_product,
    create_product,
    update_product,
    deactivate_product,
    adjust_stock
)
from otica.utils.request_data import json_body, snake_keys, pagination

products_bp = Blueprint('products', __name__, url_prefix='/api/products')


@products_bp.route('', methods=['GET'])
@require_login
def list_all():
    """List products (paginated) or search them with ?search=."""
    db_session = get_session()
    search = request.args.get('search', '').strip()
    if search:
        products = search_products(db_session, search)
    else:
        limit, offset = pagination()
        products = list_products(db_session, limit=limit, offset=offset)
    return jsonify([product.to_dict() for product in products])


@products_bp.route('/low-stock', methods=['GET'])
@require_login
def low_stock():
    """Products at or below their minimum stock level."""
    return jsonify([product.to_dict() for product in get_low_stock_products(get_session())])


@products_bp.route('/<int:product_id>', methods=['GET'])
@require_login
def detail(product_id):
    return jsonify(get_product(product_id, get_session()).to_dict())


@products_bp.route('', methods=['POST'])
@require_login
def create():
    """Register a product."""
    product = create_product(snake_keys(json_body()), get_session())
    return jsonify(product.to_dict()), 201


@products_bp.route('/<int:product_id>', methods=['PUT', 'PATCH'])
@require_login
def update(product_id):
    """Update catalog fields (partial)."""
    product = update_product(product_id, get_session(), **snake_keys(json_body()))
    return jsonify(product.to_dict())


@products_bp.route('/<int:product_id>', methods=['DELETE'])
@require_login
def delete(product_id):
    """Deactivate a product (kept for sales history)."""
    deactivate_product(product_id, get_session())
    return jsonify({'status': 'ok', 'message': 'Produto excluído com sucesso.'})


@products_bp.route('/<int:product_id>/stock', methods=['POST'])
@require_login
def stock(product_id):
    """Adjust stock. Body: {quantity: +N | -N}."""
    product = adjust_stock(product_id, json_body().get('quantity'), get_session())
    return jsonify(product.to_dict())
