"""Customer service: registration, search and purchase history."""
import logging
from typing import Dict, Any, List

from sqlalchemy import or_, func
from sqlalchemy.exc import IntegrityError

from otica.models import Customer, Sale
from otica.exceptions import BusinessLogicError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ('full_name', 'cpf', 'phone', 'email', 'notes', 'is_active')


def _clean(value):
    if value is None:
        return None
    return str(value).strip() or None


def _customer_fields(data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
    """Sanitize customer payload; full_name is required on creation."""
    fields = {}
    for key in EDITABLE_FIELDS:
        if key not in data:
            continue
        if key == 'is_active':
            if not isinstance(data[key], bool):
                raise ValidationError('isActive: deve ser verdadeiro ou falso')
            fields[key] = data[key]
        else:
            fields[key] = _clean(data[key])

    if 'full_name' in fields or not partial:
        if not fields.get('full_name'):
            raise ValidationError('Dados do cliente inválidos.', errors=['nome: valor obrigatório'])
    if fields.get('email') and '@' not in fields['email']:
        raise ValidationError('Dados do cliente inválidos.', errors=['email: formato inválido'])
    return fields


def _check_cpf_available(session, cpf, exclude_id=None) -> None:
    if not cpf:
        return
    query = session.query(Customer).filter(Customer.cpf == cpf)
    if exclude_id:
        query = query.filter(Customer.id != exclude_id)
    if query.first():
        raise BusinessLogicError('CPF já cadastrado.', status_code=409)


def list_customers(session, limit: int = 50, offset: int = 0) -> List[Customer]:
    """Active customers, most recent first."""
    return (
        session.query(Customer)
        .filter(Customer.is_active.is_(True))
        .order_by(Customer.created_at.desc(), Customer.id.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )


def search_customers(session, query_str: str, limit: int = 50) -> List[Customer]:
    """Search active customers by name, email, phone or CPF."""
    query_str = (query_str or '').strip().lower()
    if not query_str:
        return []

    pattern = f'%{query_str}%'
    return (
        session.query(Customer)
        .filter(
            Customer.is_active.is_(True),
            or_(
                func.lower(Customer.full_name).like(pattern),
                func.lower(Customer.email).like(pattern),
                Customer.phone.like(pattern),
                Customer.cpf.like(pattern)
            )
        )
        .order_by(Customer.full_name)
        .limit(limit)
        .all()
    )


def get_customer(customer_id: int, session) -> Customer:
    """Get a customer by id."""
    customer = session.get(Customer, customer_id)
    if not customer:
        raise NotFoundError(f'Cliente {customer_id} não encontrado.')
    return customer


def create_customer(data: Dict[str, Any], session) -> Customer:
    """Register a customer. CPF must be unique."""
    fields = _customer_fields(data or {})
    try:
        _check_cpf_available(session, fields.get('cpf'))
        customer = Customer(**fields)
        session.add(customer)
        session.commit()
    except BusinessLogicError as e:
        session.rollback()
        raise e
    except IntegrityError:
        session.rollback()
        raise BusinessLogicError('CPF já cadastrado.', status_code=409)

    logger.info(f"Customer {customer.id} created")
    return customer


def update_customer(customer_id: int, session, **kwargs) -> Customer:
    """Update customer fields (partial)."""
    fields = _customer_fields(kwargs, partial=True)
    try:
        customer = get_customer(customer_id, session)
        _check_cpf_available(session, fields.get('cpf'), exclude_id=customer.id)
        for key, value in fields.items():
            setattr(customer, key, value)
        session.commit()
        return customer
    except (BusinessLogicError, NotFoundError) as e:
        session.rollback()
        raise e
    except IntegrityError:
        session.rollback()
        raise BusinessLogicError('CPF já cadastrado.', status_code=409)


def get_customer_purchase_history(customer_id: int, session) -> List[Sale]:
    """Sales of a customer, most recent first (items loaded by the caller)."""
    get_customer(customer_id, session)
    return (
        session.query(Sale)
        .filter(Sale.customer_id == customer_id)
        .order_by(Sale.sale_date.desc(), Sale.id.desc())
        .all()
    )
