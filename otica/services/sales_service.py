"""
Sales service with transactional logic.
Handles sale creation, stock movements and receivable scheduling.
"""
import logging
from decimal import Decimal
from datetime import datetime
from typing import List, Dict, Any, Optional

from sqlalchemy import update

from otica.models import (
    Customer, Product, Sale, SaleItem, SaleStatus, PaymentStatus, PaymentMethod,
    AccountStatus, normalize_payment_method, normalize_payment_status
)
from otica.exceptions import BusinessLogicError, NotFoundError, ValidationError, InsufficientStockError
from otica.services.receivable_service import schedule_receivables
from otica.utils.number_format import parse_money, parse_positive_int, parse_id, MAX_MONEY

logger = logging.getLogger(__name__)

# Default upper bounds; the app passes MAX_INSTALLMENTS from config
MAX_INSTALLMENTS = 24
MAX_ITEM_QUANTITY = 9999


def generate_sale_number(session) -> str:
    """Generate a unique sale number (VEN-YYYYMMDD-HHMMSS-NNNN)."""
    now = datetime.now()
    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    count = session.query(Sale).filter(Sale.sale_date >= today_start).count()
    return f"VEN-{now.strftime('%Y%m%d-%H%M%S')}-{str(count + 1).zfill(4)}"


def parse_line_items(items) -> List[Dict[str, Any]]:
    """
    Validate line items shared by sales and quotes.

    Each item needs product_id, quantity (positive integer) and unit_price;
    total_price defaults to quantity * unit_price.

    Raises:
        ValidationError: listing every invalid field
    """
    if not items:
        raise ValidationError('Informe ao menos um item.')

    errors = []
    lines = []
    for position, item in enumerate(items, start=1):
        try:
            product_id = parse_id(item.get('product_id'), f'item {position}: produto')
            quantity = parse_positive_int(
                item.get('quantity'), f'item {position}: quantidade', maximum=MAX_ITEM_QUANTITY
            )
            unit_price = parse_money(item.get('unit_price'), f'item {position}: preço unitário')
            if item.get('total_price') is not None:
                total_price = parse_money(item.get('total_price'), f'item {position}: total')
            else:
                total_price = (unit_price * quantity).quantize(Decimal('0.01'))
                if total_price > MAX_MONEY:
                    raise ValueError(f'item {position}: total: valor muito alto')
        except (ValueError, AttributeError) as e:
            errors.append(str(e) if isinstance(e, ValueError) else f'item {position}: formato inválido')
            continue

        lines.append({
            'product_id': product_id,
            'quantity': quantity,
            'unit_price': unit_price,
            'total_price': total_price,
        })

    if errors:
        raise ValidationError('Itens inválidos.', errors=errors)
    return lines


def _parse_sale_data(sale_data: Dict[str, Any], max_installments: int = MAX_INSTALLMENTS) -> Dict[str, Any]:
    """Validate sale header fields and derive final_amount when absent."""
    errors = []
    fields = {}

    try:
        fields['customer_id'] = parse_id(sale_data.get('customer_id'), 'cliente')
    except ValueError as e:
        errors.append(str(e))

    try:
        fields['payment_method'] = normalize_payment_method(sale_data.get('payment_method'))
    except ValueError as e:
        errors.append(str(e))

    try:
        fields['payment_status'] = normalize_payment_status(sale_data.get('payment_status'))
    except ValueError as e:
        errors.append(str(e))

    installments = sale_data.get('installments')
    try:
        fields['installments'] = 1 if installments is None else parse_positive_int(
            installments, 'parcelas', maximum=max_installments
        )
    except ValueError as e:
        errors.append(str(e))

    try:
        total = parse_money(sale_data.get('total_amount'), 'valor total')
        discount = parse_money(sale_data.get('discount_amount') or '0', 'desconto')
        if sale_data.get('final_amount') is not None:
            final = parse_money(sale_data.get('final_amount'), 'valor final')
        else:
            final = total - discount
        if final < 0:
            raise ValueError('valor final: o desconto não pode ser maior que o total')
        fields.update(total_amount=total, discount_amount=discount, final_amount=final)
    except ValueError as e:
        errors.append(str(e))

    if errors:
        raise ValidationError('Dados da venda inválidos.', errors=errors)

    fields['notes'] = (sale_data.get('notes') or '').strip() or None
    return fields


def load_products(session, product_ids) -> Dict[int, Product]:
    """Batch fetch products referenced by items, rejecting unknown or inactive ones."""
    unique_ids = set(product_ids)
    products = session.query(Product).filter(Product.id.in_(unique_ids)).all()
    if len(products) != len(unique_ids):
        missing = sorted(unique_ids - {p.id for p in products})
        raise NotFoundError(f'Produto(s) não encontrado(s): {missing}')

    for product in products:
        if not product.is_active:
            raise BusinessLogicError(f'O produto "{product.name}" não está ativo.')
    return {p.id: p for p in products}


def _decrement_stock(session, lines: List[Dict[str, Any]]) -> None:
    """
    Decrement stock with one guarded UPDATE per product.

    The WHERE clause only matches when enough stock is on hand, so concurrent
    sales of the same product can never drive the quantity below zero.
    """
    required = {}
    for line in lines:
        required[line['product_id']] = required.get(line['product_id'], 0) + line['quantity']

    for product_id, quantity in required.items():
        result = session.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock_quantity >= quantity)
            .values(stock_quantity=Product.stock_quantity - quantity)
        )
        if result.rowcount == 0:
            product = session.get(Product, product_id)
            if product is None:
                raise NotFoundError(f'Produto {product_id} não encontrado.')
            raise InsufficientStockError(product.name, quantity, product.stock_quantity)


def _restore_stock(session, items) -> None:
    """Give sold quantities back to stock (sale cancellation)."""
    for item in items:
        session.execute(
            update(Product)
            .where(Product.id == item.product_id)
            .values(stock_quantity=Product.stock_quantity + item.quantity)
        )


def persist_sale(
    session,
    *,
    customer_id: int,
    user_id: int,
    total_amount: Decimal,
    discount_amount: Decimal,
    final_amount: Decimal,
    payment_method: PaymentMethod,
    payment_status: PaymentStatus,
    installments: int,
    items: List[Dict[str, Any]],
    notes: Optional[str] = None
) -> Sale:
    """
    Write a sale and everything it implies, without committing.

    Steps:
    1. Insert the sale (number generated here)
    2. Insert sale items stamped with the new sale id
    3. Decrement stock for every item
    4. Schedule receivables for deferred payment methods

    The caller owns the transaction: commit on success, rollback on error.
    """
    if not user_id:
        raise BusinessLogicError('Usuário responsável pela venda é obrigatório.')

    if session.get(Customer, customer_id) is None:
        raise NotFoundError(f'Cliente {customer_id} não encontrado.')

    load_products(session, [line['product_id'] for line in items])

    # 1. Create Sale
    sale = Sale(
        customer_id=customer_id,
        user_id=user_id,
        sale_number=generate_sale_number(session),
        total_amount=total_amount,
        discount_amount=discount_amount,
        final_amount=final_amount,
        payment_method=payment_method.value,
        payment_status=payment_status.value,
        installments=installments,
        status=SaleStatus.ACTIVE.value,
        sale_date=datetime.now(),
        notes=notes
    )
    session.add(sale)
    session.flush()

    # 2. Create SaleItems
    for line in items:
        session.add(SaleItem(
            sale_id=sale.id,
            product_id=line['product_id'],
            quantity=line['quantity'],
            unit_price=line['unit_price'],
            total_price=line['total_price']
        ))
    session.flush()

    # 3. Stock
    _decrement_stock(session, items)

    # 4. Receivables
    schedule_receivables(session, sale)
    session.flush()

    return sale


def create_sale(
    sale_data: Dict[str, Any],
    items: List[Dict[str, Any]],
    session,
    user_id: int,
    max_installments: int = MAX_INSTALLMENTS
) -> Sale:
    """
    Create a direct (counter) sale in a single transaction.

    Args:
        sale_data: customer_id, total_amount, discount_amount, final_amount
                   (optional), payment_method, payment_status, installments, notes
        items: product_id, quantity, unit_price, total_price (optional)
        session: SQLAlchemy session
        user_id: Authenticated user registering the sale (required)
        max_installments: Largest accepted installment count

    Returns:
        The persisted Sale

    Raises:
        ValidationError, NotFoundError, InsufficientStockError, BusinessLogicError
    """
    try:
        fields = _parse_sale_data(sale_data or {}, max_installments)
        lines = parse_line_items(items)
        sale = persist_sale(session, user_id=user_id, items=lines, **fields)
        session.commit()
    except (BusinessLogicError, NotFoundError) as e:
        session.rollback()
        logger.warning(f"Sale rejected: {e.message}")
        raise e
    except Exception:
        session.rollback()
        logger.exception("Unexpected error creating sale")
        raise

    logger.info(f"Sale {sale.sale_number} created (final={sale.final_amount}, method={sale.payment_method})")
    return sale


def get_sale(sale_id: int, session) -> Sale:
    """Get a sale with its items and receivables."""
    sale = session.get(Sale, sale_id)
    if not sale:
        raise NotFoundError(f'Venda {sale_id} não encontrada.')
    return sale


def list_sales(session, limit: int = 50, offset: int = 0) -> List[Sale]:
    """List sales, most recent first."""
    return (
        session.query(Sale)
        .order_by(Sale.sale_date.desc(), Sale.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )


def update_sale(sale_id: int, session, **kwargs) -> Sale:
    """Update editable sale fields (payment_status, notes)."""
    try:
        sale = get_sale(sale_id, session)
        if sale.status == SaleStatus.CANCELLED.value:
            raise BusinessLogicError(
                f'A venda {sale.sale_number} está cancelada e não pode ser alterada.',
                status_code=409
            )

        if 'payment_status' in kwargs:
            try:
                sale.payment_status = normalize_payment_status(kwargs['payment_status']).value
            except ValueError as e:
                raise ValidationError(str(e))
        if 'notes' in kwargs:
            sale.notes = kwargs['notes'].strip() if kwargs['notes'] else None

        session.commit()
        return sale
    except (BusinessLogicError, NotFoundError) as e:
        session.rollback()
        raise e
    except Exception:
        session.rollback()
        raise


def cancel_sale(sale_id: int, session) -> Sale:
    """
    Cancel a sale, returning its items to stock.

    Unpaid receivables of the sale are removed; a sale with any paid
    installment cannot be cancelled.
    """
    try:
        sale = session.query(Sale).filter(Sale.id == sale_id).with_for_update().first()
        if not sale:
            raise NotFoundError(f'Venda {sale_id} não encontrada.')

        if sale.status == SaleStatus.CANCELLED.value:
            raise BusinessLogicError(f'A venda {sale.sale_number} já está cancelada.', status_code=409)

        if any(account.status == AccountStatus.PAID.value for account in sale.receivables):
            raise BusinessLogicError(
                f'A venda {sale.sale_number} possui parcelas pagas e não pode ser cancelada.',
                status_code=409
            )

        _restore_stock(session, sale.items)

        for account in list(sale.receivables):
            sale.receivables.remove(account)

        sale.status = SaleStatus.CANCELLED.value
        session.commit()
    except (BusinessLogicError, NotFoundError) as e:
        session.rollback()
        logger.warning(f"Sale cancellation rejected: {e.message}")
        raise e
    except Exception:
        session.rollback()
        logger.exception(f"Unexpected error cancelling sale {sale_id}")
        raise

    logger.info(f"Sale {sale.sale_number} cancelled")
    return sale
