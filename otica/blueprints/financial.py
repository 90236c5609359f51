"""Financial blueprint - receivables and payables."""
from datetime import date
from flask import Blueprint, jsonify, request
from otica.database import get_session
from otica.middleware import require_login
from otica.exceptions import ValidationError
from otica.services.financial_service import (
    list_accounts,
    get_overdue_accounts,
    create_account,
    update_account,
    mark_account_paid
)
from otica.utils.request_data import json_body, snake_keys

financial_bp = Blueprint('financial', __name__, url_prefix='/api/financial')


@financial_bp.route('/accounts', methods=['GET'])
@require_login
def accounts():
    """List accounts ordered by due date (?type=receivable|payable)."""
    rows = list_accounts(get_session(), account_type=request.args.get('type'))
    return jsonify([account.to_dict() for account in rows])


@financial_bp.route('/overdue', methods=['GET'])
@require_login
def overdue():
    """Unpaid accounts past their due date."""
    rows = get_overdue_accounts(get_session())
    return jsonify([account.to_dict() for account in rows])


@financial_bp.route('/accounts', methods=['POST'])
@require_login
def create():
    """Create a manual account."""
    account = create_account(snake_keys(json_body()), get_session())
    return jsonify(account.to_dict()), 201


@financial_bp.route('/accounts/<int:account_id>', methods=['PATCH'])
@require_login
def update(account_id):
    """Update description or due date."""
    fields = {
        key: value for key, value in snake_keys(json_body()).items()
        if key in ('description', 'due_date')
    }
    account = update_account(account_id, get_session(), **fields)
    return jsonify(account.to_dict())


@financial_bp.route('/accounts/<int:account_id>/pay', methods=['POST'])
@require_login
def pay(account_id):
    """Register payment. Body (optional): {paidDate: 'YYYY-MM-DD'}."""
    paid_date = snake_keys(json_body()).get('paid_date')
    if paid_date:
        try:
            paid_date = date.fromisoformat(str(paid_date)[:10])
        except ValueError:
            raise ValidationError('paidDate: data inválida (use AAAA-MM-DD)')
    account = mark_account_paid(account_id, get_session(), paid_date=paid_date or None)
    return jsonify(account.to_dict())
