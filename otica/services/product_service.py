"""Product service: catalog maintenance, search and stock alerts."""
import logging
from typing import Dict, Any, List

from sqlalchemy import or_, func, update
from sqlalchemy.exc import IntegrityError

from otica.models import Product
from otica.exceptions import BusinessLogicError, NotFoundError, ValidationError, InsufficientStockError
from otica.utils.number_format import parse_money, parse_non_negative_int, MAX_ID

logger = logging.getLogger(__name__)

TEXT_FIELDS = ('name', 'sku', 'barcode', 'brand', 'description')


def _product_fields(data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """Validate a product payload, collecting every invalid field."""
    errors = []
    fields = {}

    for key in TEXT_FIELDS:
        if key in data:
            fields[key] = (str(data[key]).strip() or None) if data[key] is not None else None

    for key in ('name', 'sku'):
        if (key in fields or not partial) and not fields.get(key):
            errors.append(f'{key}: valor obrigatório')

    for key, label in (('sale_price', 'preço de venda'), ('cost_price', 'preço de custo')):
        if key in data and data[key] is not None:
            try:
                fields[key] = parse_money(data[key], label)
            except ValueError as e:
                errors.append(str(e))
        elif key == 'sale_price' and not partial:
            errors.append(f'{label}: valor obrigatório')

    for key, label in (('stock_quantity', 'estoque'), ('min_stock_level', 'estoque mínimo')):
        if key in data:
            try:
                fields[key] = parse_non_negative_int(data[key], label)
            except ValueError as e:
                errors.append(str(e))

    if 'is_active' in data:
        if isinstance(data['is_active'], bool):
            fields['is_active'] = data['is_active']
        else:
            errors.append('isActive: deve ser verdadeiro ou falso')

    if errors:
        raise ValidationError('Dados do produto inválidos.', errors=errors)
    return fields


def _check_sku_available(session, sku, exclude_id=None) -> None:
    if not sku:
        return
    query = session.query(Product).filter(Product.sku == sku)
    if exclude_id:
        query = query.filter(Product.id != exclude_id)
    if query.first():
        raise BusinessLogicError(f'SKU {sku} já cadastrado.', status_code=409)


def list_products(session, limit: int = 50, offset: int = 0) -> List[Product]:
    """Active products, most recent first."""
    return (
        session.query(Product)
        .filter(Product.is_active.is_(True))
        .order_by(Product.created_at.desc(), Product.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )


def search_products(session, query_str: str, limit: int = 50) -> List[Product]:
    """Search active products by name, SKU, barcode or brand."""
    query_str = (query_str or '').strip().lower()
    if not query_str:
        return []

    pattern = f'%{query_str}%'
    return (
        session.query(Product)
        .filter(
            Product.is_active.is_(True),
            or_(
                func.lower(Product.name).like(pattern),
                func.lower(Product.sku).like(pattern),
                Product.barcode.like(pattern),
                func.lower(Product.brand).like(pattern)
            )
        )
        .order_by(Product.name)
        .limit(limit)
        .all()
    )


def get_low_stock_products(session) -> List[Product]:
    """Active products at or below their minimum stock level, emptiest first."""
    return (
        session.query(Product)
        .filter(
            Product.is_active.is_(True),
            Product.stock_quantity <= Product.min_stock_level
        )
        .order_by(Product.stock_quantity, Product.id)
        .all()
    )


def get_product(product_id: int, session) -> Product:
    """Get a product by id."""
    product = session.get(Product, product_id)
    if not product:
        raise NotFoundError(f'Produto {product_id} não encontrado.')
    return product


def create_product(data: Dict[str, Any], session) -> Product:
    """Register a product. SKU must be unique."""
    fields = _product_fields(data or {})
    try:
        _check_sku_available(session, fields['sku'])
        product = Product(**fields)
        session.add(product)
        session.commit()
    except BusinessLogicError as e:
        session.rollback()
        raise e
    except IntegrityError:
        session.rollback()
        raise BusinessLogicError(f'SKU {fields["sku"]} já cadastrado.', status_code=409)

    logger.info(f"Product {product.id} ({product.sku}) created")
    return product


def update_product(product_id: int, session, **kwargs) -> Product:
    """
    Update catalog fields of a product (partial).

    Stock is not set here: use adjust_stock so concurrent sales are not
    overwritten.
    """
    if 'stock_quantity' in kwargs:
        raise ValidationError('Use o ajuste de estoque para alterar a quantidade.')

    fields = _product_fields(kwargs, partial=True)
    try:
        product = get_product(product_id, session)
        _check_sku_available(session, fields.get('sku'), exclude_id=product.id)
        for key, value in fields.items():
            setattr(product, key, value)
        session.commit()
        return product
    except (BusinessLogicError, NotFoundError) as e:
        session.rollback()
        raise e
    except IntegrityError:
        session.rollback()
        raise BusinessLogicError('SKU já cadastrado.', status_code=409)


def deactivate_product(product_id: int, session) -> Product:
    """Soft delete: hide the product from the catalog and from new sales."""
    try:
        product = get_product(product_id, session)
        product.is_active = False
        session.commit()
    except NotFoundError as e:
        session.rollback()
        raise e

    logger.info(f"Product {product_id} deactivated")
    return product


def adjust_stock(product_id: int, delta, session) -> Product:
    """
    Add (positive delta) or remove (negative delta) units from stock.

    Uses a guarded UPDATE, so stock never goes below zero.
    """
    if isinstance(delta, bool):
        raise ValidationError('quantidade: deve ser um inteiro diferente de zero')
    try:
        delta = int(str(delta).strip())
    except (TypeError, ValueError):
        raise ValidationError('quantidade: deve ser um inteiro diferente de zero')
    if delta == 0 or abs(delta) > MAX_ID:
        raise ValidationError('quantidade: deve ser um inteiro diferente de zero')

    try:
        product = get_product(product_id, session)
        result = session.execute(
            update(Product)
            .where(Product.id == product_id, Product.stock_quantity + delta >= 0)
            .values(stock_quantity=Product.stock_quantity + delta)
        )
        if result.rowcount == 0:
            raise InsufficientStockError(product.name, -delta, product.stock_quantity)
        session.commit()
    except (BusinessLogicError, NotFoundError) as e:
        session.rollback()
        raise e
    except Exception:
        session.rollback()
        raise

    logger.info(f"Stock of product {product_id} adjusted by {delta}")
    return product
