"""Financial accounts service (contas a receber / a pagar)."""
import logging
from datetime import date
from typing import Dict, Any, List, Optional

from sqlalchemy import update

from otica.models import Customer, FinancialAccount, AccountType, AccountStatus
from otica.exceptions import BusinessLogicError, NotFoundError, ValidationError
from otica.utils.number_format import parse_money, parse_id

logger = logging.getLogger(__name__)


def _parse_account_type(value) -> str:
    try:
        return AccountType(str(value or '').strip().lower()).value
    except ValueError:
        raise ValidationError(f'Tipo de conta inválido: {value}')


def list_accounts(session, account_type: Optional[str] = None) -> List[FinancialAccount]:
    """List financial accounts ordered by due date, optionally filtered by type."""
    query = session.query(FinancialAccount)
    if account_type:
        query = query.filter(FinancialAccount.type == _parse_account_type(account_type))
    return query.order_by(FinancialAccount.due_date, FinancialAccount.id).all()


def get_account(account_id: int, session) -> FinancialAccount:
    """Get a financial account by id."""
    account = session.get(FinancialAccount, account_id)
    if not account:
        raise NotFoundError(f'Conta {account_id} não encontrada.')
    return account


def get_overdue_accounts(session, today: Optional[date] = None) -> List[FinancialAccount]:
    """Accounts still unpaid whose due date has passed."""
    today = today or date.today()
    return (
        session.query(FinancialAccount)
        .filter(
            FinancialAccount.status.in_([AccountStatus.PENDING.value, AccountStatus.OVERDUE.value]),
            FinancialAccount.due_date < today
        )
        .order_by(FinancialAccount.due_date, FinancialAccount.id)
        .all()
    )


def create_account(data: Dict[str, Any], session) -> FinancialAccount:
    """
    Create a manual financial account.

    Receivables tied to a sale are generated by the sale itself; this entry
    point is for bills and other amounts not linked to a sale.
    """
    errors = []
    data = data or {}

    description = (data.get('description') or '').strip()
    if not description:
        errors.append('descrição: valor obrigatório')

    try:
        account_type = _parse_account_type(data.get('type'))
    except ValidationError as e:
        errors.append(e.message)
        account_type = None

    try:
        amount = parse_money(data.get('amount'), 'valor')
        if amount == 0:
            errors.append('valor: deve ser maior que zero')
    except ValueError as e:
        errors.append(str(e))
        amount = None

    due_date = data.get('due_date')
    if isinstance(due_date, str):
        try:
            due_date = date.fromisoformat(due_date[:10])
        except ValueError:
            due_date = None
    if not isinstance(due_date, date):
        errors.append('vencimento: data inválida (use AAAA-MM-DD)')

    customer_id = data.get('customer_id')
    if customer_id is not None:
        try:
            customer_id = parse_id(customer_id, 'cliente')
        except ValueError as e:
            errors.append(str(e))

    if errors:
        raise ValidationError('Dados da conta inválidos.', errors=errors)

    try:
        if customer_id is not None and session.get(Customer, customer_id) is None:
            raise NotFoundError(f'Cliente {customer_id} não encontrado.')

        account = FinancialAccount(
            customer_id=customer_id,
            type=account_type,
            description=description,
            amount=amount,
            due_date=due_date,
            status=AccountStatus.PENDING.value
        )
        session.add(account)
        session.commit()
    except NotFoundError as e:
        session.rollback()
        raise e
    except Exception:
        session.rollback()
        raise

    logger.info(f"Financial account {account.id} created ({account_type}, {amount})")
    return account


def mark_account_paid(account_id: int, session, paid_date: Optional[date] = None) -> FinancialAccount:
    """Register the payment of an account (installment received or bill paid)."""
    try:
        account = (
            session.query(FinancialAccount)
            .filter(FinancialAccount.id == account_id)
            .with_for_update()
            .first()
        )
        if not account:
            raise NotFoundError(f'Conta {account_id} não encontrada.')
        if account.status == AccountStatus.PAID.value:
            raise BusinessLogicError('Esta conta já está paga.', status_code=409)

        account.status = AccountStatus.PAID.value
        account.paid_date = paid_date or date.today()
        session.commit()
    except (BusinessLogicError, NotFoundError) as e:
        session.rollback()
        raise e
    except Exception:
        session.rollback()
        raise

    logger.info(f"Financial account {account_id} paid on {account.paid_date}")
    return account


def update_account(account_id: int, session, **kwargs) -> FinancialAccount:
    """Update description or due date of an unpaid account."""
    try:
        account = get_account(account_id, session)
        if account.status == AccountStatus.PAID.value:
            raise BusinessLogicError('Conta paga não pode ser alterada.', status_code=409)

        if 'description' in kwargs:
            description = (kwargs['description'] or '').strip()
            if not description:
                raise ValidationError('descrição: valor obrigatório')
            account.description = description
        if 'due_date' in kwargs:
            try:
                account.due_date = date.fromisoformat(str(kwargs['due_date'])[:10])
            except ValueError:
                raise ValidationError('vencimento: data inválida (use AAAA-MM-DD)')
            if account.status == AccountStatus.OVERDUE.value and account.due_date >= date.today():
                account.status = AccountStatus.PENDING.value

        session.commit()
        return account
    except (BusinessLogicError, NotFoundError) as e:
        session.rollback()
        raise e
    except Exception:
        session.rollback()
        raise


def update_overdue_accounts(session, today: Optional[date] = None) -> int:
    """
    Flag pending accounts past their due date as overdue.

    Returns:
        Number of accounts updated
    """
    today = today or date.today()
    try:
        result = session.execute(
            update(FinancialAccount)
            .where(
                FinancialAccount.status == AccountStatus.PENDING.value,
                FinancialAccount.due_date < today
            )
            .values(status=AccountStatus.OVERDUE.value)
        )
        session.commit()
    except Exception:
        session.rollback()
        logger.exception("Error updating overdue accounts")
        raise

    logger.info(f"{result.rowcount} account(s) flagged as overdue")
    return result.rowcount
