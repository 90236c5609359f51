"""Helpers to read JSON request payloads (camelCase in, snake_case out)."""
import re
from flask import request, current_app
from otica.exceptions import ValidationError

_CAMEL_RE = re.compile(r'(?<!^)(?=[A-Z])')


def to_snake(name: str) -> str:
    """paymentMethod -> payment_method (snake_case keys pass through)."""
    return _CAMEL_RE.sub('_', name).lower()


def snake_keys(data: dict) -> dict:
    """Shallow copy of a dict with snake_case keys."""
    return {to_snake(key): value for key, value in (data or {}).items()}


def json_body() -> dict:
    """Return the request JSON object, rejecting anything that is not an object."""
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError('O corpo da requisição deve ser um objeto JSON.')
    return data


def pagination():
    """Read page/limit query args (1-based page) and return (limit, offset)."""
    default_limit = current_app.config.get('DEFAULT_PAGE_SIZE', 50)
    try:
        page = max(int(request.args.get('page', 1)), 1)
        limit = min(max(int(request.args.get('limit', default_limit)), 1), 200)
    except ValueError:
        raise ValidationError('Parâmetros de paginação inválidos.')
    return limit, (page - 1) * limit
