"""
Receivable scheduling for sales paid on deferred instruments.

Only crediário and installment card payments leave money owed by the
customer; cash, PIX, single card payments and undefined methods settle at the
counter and produce no receivable.
"""
import logging
from datetime import date, datetime
from decimal import Decimal, ROUND_DOWN
from typing import List, Optional

from dateutil.relativedelta import relativedelta

from otica.models import (
    Sale, FinancialAccount, PaymentMethod, AccountType, AccountStatus,
    normalize_payment_method
)

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')

CARD_LABEL = ' (Cartão de Crédito)'


def split_installments(amount: Decimal, count: int) -> List[Decimal]:
    """
    Split an amount into `count` installments of whole cents.

    Every installment but the last is amount / count truncated to cents; the
    last one takes the remainder, so the parts always add up to `amount`.

    Examples:
        split_installments(Decimal('600.00'), 3) -> [200.00, 200.00, 200.00]
        split_installments(Decimal('100.00'), 3) -> [33.33, 33.33, 33.34]
    """
    if count < 1:
        raise ValueError('O número de parcelas deve ser maior que zero.')

    amount = Decimal(str(amount)).quantize(CENT)
    base = (amount / count).quantize(CENT, rounding=ROUND_DOWN)
    parts = [base] * (count - 1)
    parts.append(amount - base * (count - 1))
    return parts


def installment_label(payment_method, installments: int) -> Optional[str]:
    """
    Decide whether a payment generates receivables.

    Returns the suffix used in the installment description, or None when the
    sale is settled at the counter.
    """
    method = normalize_payment_method(payment_method)

    if method is PaymentMethod.CREDIARIO:
        return ''
    if method is PaymentMethod.CARD and installments > 1:
        return CARD_LABEL
    return None


def installment_description(index: int, count: int, sale_number: str, label: str = '') -> str:
    """Human description of one installment, e.g. 'Parcela 2/3 - Venda #VEN-...'."""
    return f"Parcela {index}/{count}{label} - Venda #{sale_number}"


def due_dates(start: date, count: int) -> List[date]:
    """Monthly due dates: start + 1 month, + 2 months, ... (clamped to month end)."""
    if isinstance(start, datetime):
        start = start.date()
    return [start + relativedelta(months=i) for i in range(1, count + 1)]


def schedule_receivables(session, sale: Sale) -> List[FinancialAccount]:
    """
    Create the receivables owed for a persisted sale.

    Runs inside the caller's transaction: rows are added to the session but
    never committed here.

    Args:
        session: SQLAlchemy session
        sale: Flushed Sale (must have id, sale_number, final_amount,
              payment_method, installments)

    Returns:
        List of FinancialAccount rows added (empty for immediate payments)
    """
    count = sale.installments or 1
    label = installment_label(sale.payment_method, count)
    if label is None:
        return []

    start = sale.sale_date or datetime.now()
    amounts = split_installments(sale.final_amount, count)

    accounts = []
    for index, (amount, due_date) in enumerate(zip(amounts, due_dates(start, count)), start=1):
        account = FinancialAccount(
            customer_id=sale.customer_id,
            sale_id=sale.id,
            type=AccountType.RECEIVABLE.value,
            description=installment_description(index, count, sale.sale_number, label),
            amount=amount,
            due_date=due_date,
            status=AccountStatus.PENDING.value,
        )
        session.add(account)
        accounts.append(account)

    logger.info(f"Scheduled {len(accounts)} receivable(s) for sale {sale.sale_number} ({sale.payment_method})")
    return accounts
