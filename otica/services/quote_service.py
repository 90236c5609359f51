"""Quote service for managing and converting sales quotes."""
import logging
from datetime import datetime, date, timedelta
from decimal import Decimal
from typing import Dict, Any, List, Optional

from otica.models import (
    Customer, Quote, QuoteItem, QuoteStatus, Sale, PaymentMethod,
    CONVERTIBLE_STATUSES, normalize_payment_method, normalize_payment_status
)
from otica.exceptions import BusinessLogicError, NotFoundError, ValidationError
from otica.services.sales_service import parse_line_items, persist_sale, load_products, MAX_INSTALLMENTS
from otica.utils.number_format import parse_money, parse_positive_int, parse_id

logger = logging.getLogger(__name__)

# Statuses a user may set by hand; CONVERTED is reserved for conversion
EDITABLE_STATUSES = (QuoteStatus.PENDING.value, QuoteStatus.APPROVED.value, QuoteStatus.REJECTED.value)


def generate_quote_number(session) -> str:
    """Generate a unique quote number."""
    now = datetime.now()
    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    count = session.query(Quote).filter(Quote.created_at >= today_start).count()
    return f"ORC-{now.strftime('%Y%m%d-%H%M%S')}-{str(count + 1).zfill(4)}"


def _parse_date(value, field='validade') -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        raise ValidationError(f'{field}: data inválida (use AAAA-MM-DD)')


def create_quote(
    quote_data: Dict[str, Any],
    items: List[Dict[str, Any]],
    session,
    user_id: int,
    valid_days: int = 15
) -> Quote:
    """
    Create a persisted quote with its items.

    total_amount defaults to the sum of item totals; final_amount is always
    total_amount - discount_amount.
    """
    if not user_id:
        raise BusinessLogicError('Usuário responsável pelo orçamento é obrigatório.')

    quote_data = quote_data or {}

    try:
        lines = parse_line_items(items)

        try:
            customer_id = parse_id(quote_data.get('customer_id'), 'cliente')
            if quote_data.get('total_amount') is not None:
                total = parse_money(quote_data.get('total_amount'), 'valor total')
            else:
                total = sum((line['total_price'] for line in lines), Decimal('0.00'))
            discount = parse_money(quote_data.get('discount_amount') or '0', 'desconto')
        except ValueError as e:
            raise ValidationError(str(e))

        final = total - discount
        if final < 0:
            raise ValidationError('O desconto não pode ser maior que o total.')

        if quote_data.get('valid_until'):
            valid_until = _parse_date(quote_data['valid_until'])
        else:
            valid_until = date.today() + timedelta(days=valid_days)

        if session.get(Customer, customer_id) is None:
            raise NotFoundError(f'Cliente {customer_id} não encontrado.')
        load_products(session, [line['product_id'] for line in lines])

        quote = Quote(
            customer_id=customer_id,
            user_id=user_id,
            quote_number=generate_quote_number(session),
            total_amount=total,
            discount_amount=discount,
            final_amount=final,
            status=QuoteStatus.PENDING.value,
            valid_until=valid_until,
            notes=(quote_data.get('notes') or '').strip() or None,
            created_at=datetime.now()
        )
        session.add(quote)
        session.flush()

        for line in lines:
            session.add(QuoteItem(quote_id=quote.id, **line))

        session.commit()
    except (BusinessLogicError, NotFoundError) as e:
        session.rollback()
        raise e
    except Exception:
        session.rollback()
        raise

    logger.info(f"Quote {quote.quote_number} created (final={quote.final_amount})")
    return quote


def get_quote(quote_id: int, session) -> Quote:
    """Get a quote with its items and customer."""
    quote = session.get(Quote, quote_id)
    if not quote:
        raise NotFoundError(f'Orçamento {quote_id} não encontrado.')
    return quote


def list_quotes(session, limit: int = 50, offset: int = 0, status: Optional[str] = None) -> List[Quote]:
    """List quotes, most recent first, optionally filtered by status."""
    query = session.query(Quote)
    if status:
        query = query.filter(Quote.status == status.lower())
    return query.order_by(Quote.created_at.desc(), Quote.id.desc()).limit(limit).offset(offset).all()


def update_quote(quote_id: int, session, **kwargs) -> Quote:
    """Update notes, validity or status of a quote that has not been converted."""
    try:
        quote = session.query(Quote).filter(Quote.id == quote_id).with_for_update().first()
        if not quote:
            raise NotFoundError(f'Orçamento {quote_id} não encontrado.')
        if quote.status == QuoteStatus.CONVERTED.value:
            raise BusinessLogicError('Orçamento já convertido em venda não pode ser alterado.', status_code=409)

        if 'status' in kwargs:
            status = (kwargs['status'] or '').strip().lower()
            if status not in EDITABLE_STATUSES:
                raise ValidationError(f'Status de orçamento inválido: {kwargs["status"]}')
            quote.status = status
        if 'valid_until' in kwargs:
            quote.valid_until = _parse_date(kwargs['valid_until'])
        if 'notes' in kwargs:
            quote.notes = kwargs['notes'].strip() if kwargs['notes'] else None

        session.commit()
        return quote
    except (BusinessLogicError, NotFoundError) as e:
        session.rollback()
        raise e
    except Exception:
        session.rollback()
        raise


def delete_quote(quote_id: int, session) -> None:
    """Delete a quote and its items."""
    try:
        quote = get_quote(quote_id, session)
        session.delete(quote)
        session.commit()
    except NotFoundError as e:
        session.rollback()
        raise e
    except Exception:
        session.rollback()
        raise

    logger.info(f"Quote {quote_id} deleted")


def convert_quote_to_sale(
    quote_id: int,
    session,
    payment_info: Optional[Dict[str, Any]] = None,
    max_installments: int = MAX_INSTALLMENTS
) -> Sale:
    """
    Convert a quote to a sale.

    The sale copies customer, user and amounts from the quote and its items
    from the quote items; stock, receivables and the quote status change are
    committed together.

    Args:
        quote_id: Quote ID
        session: SQLAlchemy session
        payment_info: payment_method, payment_status, installments
                      (defaults: pending, pending, 1)
        max_installments: Largest accepted installment count

    Raises:
        NotFoundError: quote does not exist
        BusinessLogicError: quote already converted, rejected or expired
        ValidationError: invalid payment info
    """
    payment_info = payment_info or {}
    installments = payment_info.get('installments')
    try:
        payment_method = normalize_payment_method(payment_info.get('payment_method') or PaymentMethod.PENDING)
        payment_status = normalize_payment_status(payment_info.get('payment_status'))
        installments = 1 if installments is None else parse_positive_int(
            installments, 'parcelas', maximum=max_installments
        )
    except ValueError as e:
        raise ValidationError(str(e))

    try:
        quote = session.query(Quote).filter(Quote.id == quote_id).with_for_update().first()

        if not quote:
            raise NotFoundError(f'Orçamento {quote_id} não encontrado.')
        if quote.status not in CONVERTIBLE_STATUSES:
            raise BusinessLogicError(
                f'Orçamento {quote.quote_number} não pode ser convertido (status: {quote.status}).',
                status_code=409
            )
        if quote.is_expired:
            raise BusinessLogicError(f'Orçamento {quote.quote_number} vencido.', status_code=409)
        if not quote.items:
            raise BusinessLogicError(f'Orçamento {quote.quote_number} não possui itens.')

        sale = persist_sale(
            session,
            customer_id=quote.customer_id,
            user_id=quote.user_id,
            total_amount=quote.total_amount,
            discount_amount=quote.discount_amount,
            final_amount=quote.final_amount,
            payment_method=payment_method,
            payment_status=payment_status,
            installments=installments,
            items=[{
                'product_id': item.product_id,
                'quantity': item.quantity,
                'unit_price': item.unit_price,
                'total_price': item.total_price,
            } for item in quote.items],
            notes=f'Convertida do orçamento {quote.quote_number}'
        )

        quote.status = QuoteStatus.CONVERTED.value
        session.commit()
    except (BusinessLogicError, NotFoundError) as e:
        session.rollback()
        logger.warning(f"Quote {quote_id} conversion rejected: {e.message}")
        raise e
    except Exception:
        session.rollback()
        logger.exception(f"Unexpected error converting quote {quote_id}")
        raise

    logger.info(f"Quote {quote_id} converted into sale {sale.sale_number}")
    return sale
