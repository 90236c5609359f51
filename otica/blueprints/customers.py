"""Customers blueprint - registration, search and purchase history."""
from flask import Blueprint, jsonify, request
from otica.database import get_session
from otica.middleware import require_login
from otica.services.customer_service import (
    list_customers,
    search_customers,
    get_customer,
    create_customer,
    update_customer,
    get_customer_purchase_history,
    EDITABLE_FIELDS
)
from otica.utils.request_data import json_body, snake_keys, pagination

customers_bp = Blueprint('customers', __name__, url_prefix='/api/customers')


@customers_bp.route('', methods=['GET'])
@require_login
def list_all():
    """List customers (paginated) or search them with ?search=."""
    db_session = get_session()
    search = request.args.get('search', '').strip()
    if search:
        customers = search_customers(db_session, search)
    else:
        limit, offset = pagination()
        customers = list_customers(db_session, limit=limit, offset=offset)
    return jsonify([customer.to_dict() for customer in customers])


@customers_bp.route('/<int:customer_id>', methods=['GET'])
@require_login
def detail(customer_id):
    customer = get_customer(customer_id, get_session())
    return jsonify(customer.to_dict())


@customers_bp.route('', methods=['POST'])
@require_login
def create():
    """Register a customer."""
    customer = create_customer(snake_keys(json_body()), get_session())
    return jsonify(customer.to_dict()), 201


@customers_bp.route('/<int:customer_id>', methods=['PUT', 'PATCH'])
@require_login
def update(customer_id):
    """Update customer data (partial)."""
    fields = {
        key: value for key, value in snake_keys(json_body()).items()
        if key in EDITABLE_FIELDS
    }
    customer = update_customer(customer_id, get_session(), **fields)
    return jsonify(customer.to_dict())


@customers_bp.route('/<int:customer_id>/purchase-history', methods=['GET'])
@require_login
def purchase_history(customer_id):
    """Customer sales with their items."""
    sales = get_customer_purchase_history(customer_id, get_session())
    return jsonify([sale.to_dict(with_items=True) for sale in sales])
