"""
Integration tests for financial accounts (receivables and payables).
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from otica.models import FinancialAccount
from otica.exceptions import BusinessLogicError, NotFoundError, ValidationError
from otica.services.financial_service import (
    create_account, list_accounts, get_overdue_accounts, mark_account_paid,
    update_account, update_overdue_accounts
)


@pytest.fixture
def rent(session):
    """Payable due yesterday."""
    return create_account({
        'description': 'Aluguel da loja',
        'type': 'payable',
        'amount': '2500.00',
        'due_date': (date.today() - timedelta(days=1)).isoformat(),
    }, session)


class TestFinancialAccounts:

    def test_create_account(self, session, rent):
        assert rent.id is not None
        assert rent.status == 'pending'
        assert rent.amount == Decimal('2500.00')
        assert rent.sale_id is None

    def test_create_account_validation(self, session):
        with pytest.raises(ValidationError) as exc:
            create_account({'type': 'other', 'amount': '0', 'due_date': '31/12/2026'}, session)
        assert len(exc.value.errors) == 4

    def test_create_account_unknown_customer(self, session):
        with pytest.raises(NotFoundError):
            create_account({
                'description': 'Parcela avulsa', 'type': 'receivable', 'amount': '10',
                'due_date': date.today().isoformat(), 'customer_id': 999,
            }, session)

    def test_create_account_rejects_malformed_customer(self, session):
        with pytest.raises(ValidationError) as exc:
            create_account({
                'description': 'Parcela avulsa', 'type': 'receivable', 'amount': '10',
                'due_date': date.today().isoformat(), 'customer_id': 'abc',
            }, session)
        assert exc.value.errors == ['cliente: deve ser um inteiro positivo']
        assert session.query(FinancialAccount).count() == 0

    def test_list_by_type(self, session, rent, customer):
        create_account({
            'description': 'Conserto', 'type': 'receivable', 'amount': '80',
            'due_date': date.today().isoformat(), 'customer_id': customer.id,
        }, session)

        assert [a.type for a in list_accounts(session, 'payable')] == ['payable']
        assert len(list_accounts(session)) == 2

    def test_update_overdue_accounts(self, session, rent):
        create_account({
            'description': 'Energia', 'type': 'payable', 'amount': '300',
            'due_date': (date.today() + timedelta(days=10)).isoformat(),
        }, session)

        assert update_overdue_accounts(session) == 1
        assert session.get(FinancialAccount, rent.id).status == 'overdue'
        assert [a.id for a in get_overdue_accounts(session)] == [rent.id]

        # Idempotent
        assert update_overdue_accounts(session) == 0

    def test_mark_paid(self, session, rent):
        paid = mark_account_paid(rent.id, session)

        assert paid.status == 'paid'
        assert paid.paid_date == date.today()
        assert get_overdue_accounts(session) == []

        with pytest.raises(BusinessLogicError) as exc:
            mark_account_paid(rent.id, session)
        assert exc.value.status_code == 409

    def test_paid_accounts_are_not_flagged_overdue(self, session, rent):
        mark_account_paid(rent.id, session, paid_date=date.today())
        assert update_overdue_accounts(session) == 0

    def test_reschedule_overdue_account(self, session, rent):
        update_overdue_accounts(session)
        new_due = date.today() + timedelta(days=5)

        account = update_account(rent.id, session, due_date=new_due.isoformat())

        assert account.due_date == new_due
        assert account.status == 'pending'

    def test_missing_account(self, session):
        with pytest.raises(NotFoundError):
            mark_account_paid(12345, session)
