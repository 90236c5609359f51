"""
Formatting helpers for JSON payloads and human-readable (pt-BR) output.
"""
from decimal import Decimal, InvalidOperation
from datetime import date, datetime
from typing import Union, Optional


CENT = Decimal('0.01')


def money_str(value: Union[int, float, Decimal, str, None]) -> Optional[str]:
    """
    Serialize a monetary amount as a fixed-point string with two decimals.

    Examples:
        money_str(Decimal('600')) -> "600.00"
        money_str(None) -> None
    """
    if value is None:
        return None
    return str(Decimal(str(value)).quantize(CENT))


def iso(value: Union[date, datetime, None]) -> Optional[str]:
    """ISO-8601 representation of a date or datetime (None stays None)."""
    if value is None:
        return None
    return value.isoformat()


def money_br(value: Union[int, float, Decimal, str, None]) -> str:
    """
    Formata um valor monetário no padrão brasileiro com 2 decimais.

    Examples:
        money_br(1500) -> "R$ 1.500,00"
        money_br(Decimal('200.5')) -> "R$ 200,50"
        money_br(None) -> "-"
    """
    if value is None or value == "":
        return "-"

    try:
        num = Decimal(str(value)).quantize(CENT)
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    sign = "-" if num < 0 else ""
    num = abs(num)

    integer_part, decimal_part = f"{num:.2f}".split(".")
    reversed_int = integer_part[::-1]
    groups = [reversed_int[i:i+3] for i in range(0, len(reversed_int), 3)]
    integer_formatted = '.'.join(groups)[::-1]

    return f"{sign}R$ {integer_formatted},{decimal_part}"


def date_br(value: Union[date, datetime, None]) -> str:
    """
    Formata uma data no padrão DD/MM/YYYY.

    Examples:
        date_br(date(2026, 1, 12)) -> "12/01/2026"
    """
    if value is None:
        return "-"

    if isinstance(value, datetime):
        value = value.date()

    if not isinstance(value, date):
        return "-"

    return value.strftime("%d/%m/%Y")
