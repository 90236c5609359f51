"""Parsing utilities for amounts and counts coming from request payloads."""
from decimal import Decimal, InvalidOperation

# Largest amount a Numeric(10, 2) column holds
MAX_MONEY = Decimal('99999999.99')


def parse_money(value, field='valor') -> Decimal:
    """
    Parse a monetary value (string or number) into a Decimal with 2 places.

    Accepts "600.00", "600", 600 and 600.5. Floats are converted through str()
    so that 0.1 stays 0.10.

    Raises:
        ValueError: if the value is empty, not numeric or negative.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValueError(f'{field}: valor obrigatório')

    if isinstance(value, bool):
        raise ValueError(f'{field}: formato inválido')

    try:
        decimal_value = Decimal(str(value).strip())
        if not decimal_value.is_finite():
            raise ValueError(f'{field}: formato inválido')
        if decimal_value < 0:
            raise ValueError(f'{field}: o valor não pode ser negativo')
        if decimal_value > MAX_MONEY:
            raise ValueError(f'{field}: valor muito alto')
        return decimal_value.quantize(Decimal('0.01'))
    except InvalidOperation:
        raise ValueError(f'{field}: formato inválido')


def parse_positive_int(value, field='quantidade', maximum=None) -> int:
    """
    Parse a strictly positive integer (quantities, installment counts).

    Raises:
        ValueError: if the value is not an integer >= 1 or exceeds maximum.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError(f'{field}: deve ser um inteiro positivo')

    if isinstance(value, float):
        if not value.is_integer():
            raise ValueError(f'{field}: deve ser um inteiro positivo')
        value = int(value)

    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValueError(f'{field}: deve ser um inteiro positivo')

    if number < 1:
        raise ValueError(f'{field}: deve ser um inteiro positivo')

    if maximum is not None and number > maximum:
        raise ValueError(f'{field}: deve ser no máximo {maximum}')

    return number


# Largest value of an Integer (int4) column
MAX_ID = 2147483647


def parse_id(value, field='id') -> int:
    """Parse a row identifier coming from a payload."""
    return parse_positive_int(value, field, maximum=MAX_ID)


def parse_non_negative_int(value, field='quantidade') -> int:
    """Parse an integer >= 0 (stock levels)."""
    if not isinstance(value, bool) and isinstance(value, (int, float, str)):
        if str(value).strip() in ('0', '0.0'):
            return 0
    return parse_positive_int(value, field, maximum=MAX_ID)
