"""
Integration tests for sale creation, stock movement and receivables.
"""

import pytest
from datetime import date
from decimal import Decimal
from dateutil.relativedelta import relativedelta

from otica.models import Product, Sale, SaleItem, FinancialAccount, AccountStatus
from otica.exceptions import (
    BusinessLogicError, InsufficientStockError, NotFoundError, ValidationError
)
from otica.services.sales_service import create_sale, cancel_sale, update_sale, list_sales


def _sale_data(customer, method, installments=1, total='600.00', **extra):
    data = {
        'customer_id': customer.id,
        'total_amount': total,
        'discount_amount': '0',
        'payment_method': method,
        'installments': installments,
    }
    data.update(extra)
    return data


class TestCreateSale:
    """Direct sale creation."""

    def test_cash_sale_decrements_stock_without_receivables(self, session, user, customer, product):
        sale = create_sale(
            _sale_data(customer, 'dinheiro', payment_status='paid'),
            [{'product_id': product.id, 'quantity': 3, 'unit_price': '200.00'}],
            session,
            user_id=user.id
        )

        assert sale.id is not None
        assert sale.sale_number.startswith('VEN-')
        assert sale.final_amount == Decimal('600.00')
        assert sale.payment_method == 'dinheiro'
        assert len(sale.items) == 1
        assert sale.items[0].sale_id == sale.id
        assert session.get(Product, product.id).stock_quantity == 7
        assert session.query(FinancialAccount).count() == 0

    def test_crediario_generates_monthly_receivables(self, session, user, customer, product):
        sale = create_sale(
            _sale_data(customer, 'crediario', installments=3),
            [{'product_id': product.id, 'quantity': 3, 'unit_price': '200.00'}],
            session,
            user_id=user.id
        )

        receivables = sale.receivables
        assert [r.amount for r in receivables] == [Decimal('200.00')] * 3
        assert [r.description for r in receivables] == [
            f'Parcela {i}/3 - Venda #{sale.sale_number}' for i in (1, 2, 3)
        ]
        sale_day = sale.sale_date.date()
        assert [r.due_date for r in receivables] == [sale_day + relativedelta(months=i) for i in (1, 2, 3)]
        assert all(r.type == 'receivable' and r.status == 'pending' for r in receivables)
        assert all(r.customer_id == customer.id for r in receivables)

    def test_card_installments_use_card_label(self, session, user, customer, product):
        sale = create_sale(
            _sale_data(customer, 'cartao', installments=2, total='400.00'),
            [{'product_id': product.id, 'quantity': 2, 'unit_price': '200.00'}],
            session,
            user_id=user.id
        )

        assert [r.description for r in sale.receivables] == [
            f'Parcela {i}/2 (Cartão de Crédito) - Venda #{sale.sale_number}' for i in (1, 2)
        ]

    @pytest.mark.parametrize('method,installments', [
        ('cartao', 1), ('pix', 3), ('pending', 2), ('dinheiro', 4),
    ])
    def test_no_receivables_for_immediate_payments(self, session, user, customer, product, method, installments):
        create_sale(
            _sale_data(customer, method, installments=installments, total='200.00'),
            [{'product_id': product.id, 'quantity': 1, 'unit_price': '200.00'}],
            session,
            user_id=user.id
        )
        assert session.query(FinancialAccount).count() == 0

    def test_receivables_sum_to_final_amount(self, session, user, customer, product):
        sale = create_sale(
            _sale_data(customer, 'crediario', installments=3, total='200.00', discount_amount='100.00'),
            [{'product_id': product.id, 'quantity': 1, 'unit_price': '200.00'}],
            session,
            user_id=user.id
        )

        assert sale.final_amount == Decimal('100.00')
        amounts = [r.amount for r in sale.receivables]
        assert amounts == [Decimal('33.33'), Decimal('33.33'), Decimal('33.34')]
        assert sum(amounts) == sale.final_amount

    def test_insufficient_stock_rolls_back_everything(self, session, user, customer, product, lens):
        product_id, lens_id = product.id, lens.id

        with pytest.raises(InsufficientStockError) as exc:
            create_sale(
                _sale_data(customer, 'crediario', installments=2, total='1250.00'),
                [
                    {'product_id': product_id, 'quantity': 1, 'unit_price': '200.00'},
                    {'product_id': lens_id, 'quantity': 3, 'unit_price': '350.00'},
                ],
                session,
                user_id=user.id
            )

        assert exc.value.status_code == 409
        assert session.get(Product, product_id).stock_quantity == 10
        assert session.get(Product, lens_id).stock_quantity == 2
        assert session.query(Sale).count() == 0
        assert session.query(SaleItem).count() == 0
        assert session.query(FinancialAccount).count() == 0

    def test_repeated_product_lines_are_checked_together(self, session, user, customer, lens):
        lens_id = lens.id
        with pytest.raises(InsufficientStockError):
            create_sale(
                _sale_data(customer, 'pix', total='1050.00'),
                [
                    {'product_id': lens_id, 'quantity': 2, 'unit_price': '350.00'},
                    {'product_id': lens_id, 'quantity': 1, 'unit_price': '350.00'},
                ],
                session,
                user_id=user.id
            )
        assert session.get(Product, lens_id).stock_quantity == 2

    def test_user_is_required(self, session, customer, product):
        with pytest.raises(BusinessLogicError):
            create_sale(
                _sale_data(customer, 'pix', total='200.00'),
                [{'product_id': product.id, 'quantity': 1, 'unit_price': '200.00'}],
                session,
                user_id=None
            )
        assert session.query(Sale).count() == 0

    def test_unknown_product(self, session, user, customer):
        with pytest.raises(NotFoundError):
            create_sale(
                _sale_data(customer, 'pix', total='200.00'),
                [{'product_id': 9999, 'quantity': 1, 'unit_price': '200.00'}],
                session,
                user_id=user.id
            )

    def test_invalid_payload_lists_errors(self, session, user, customer):
        with pytest.raises(ValidationError) as exc:
            create_sale(
                {'customer_id': customer.id, 'total_amount': 'abc', 'payment_method': 'boleto'},
                [{'product_id': 1, 'quantity': 0, 'unit_price': '10'}],
                session,
                user_id=user.id
            )
        assert exc.value.status_code == 400
        assert len(exc.value.errors) >= 2

    def test_huge_amount_is_a_validation_error(self, session, user, customer, product):
        with pytest.raises(ValidationError) as exc:
            create_sale(
                _sale_data(customer, 'pix', total='1e30'),
                [{'product_id': product.id, 'quantity': 1, 'unit_price': '200.00'}],
                session,
                user_id=user.id
            )
        assert any('muito alto' in error for error in exc.value.errors)
        assert session.query(Sale).count() == 0

    def test_installments_above_limit_rejected(self, session, user, customer, product):
        product_id = product.id
        with pytest.raises(ValidationError) as exc:
            create_sale(
                _sale_data(customer, 'crediario', installments=200000),
                [{'product_id': product_id, 'quantity': 3, 'unit_price': '200.00'}],
                session,
                user_id=user.id
            )
        assert exc.value.status_code == 400
        assert session.query(Sale).count() == 0
        assert session.query(FinancialAccount).count() == 0
        assert session.get(Product, product_id).stock_quantity == 10

    def test_installment_limit_is_configurable(self, session, user, customer, product):
        with pytest.raises(ValidationError):
            create_sale(
                _sale_data(customer, 'crediario', installments=13),
                [{'product_id': product.id, 'quantity': 3, 'unit_price': '200.00'}],
                session,
                user_id=user.id,
                max_installments=12
            )

        sale = create_sale(
            _sale_data(customer, 'crediario', installments=24),
            [{'product_id': product.id, 'quantity': 3, 'unit_price': '200.00'}],
            session,
            user_id=user.id
        )
        assert len(sale.receivables) == 24
        assert sum(r.amount for r in sale.receivables) == Decimal('600.00')

    def test_sale_numbers_are_unique(self, session, user, customer, product):
        numbers = {
            create_sale(
                _sale_data(customer, 'pix', total='200.00'),
                [{'product_id': product.id, 'quantity': 1, 'unit_price': '200.00'}],
                session,
                user_id=user.id
            ).sale_number
            for _ in range(3)
        }
        assert len(numbers) == 3
        assert len(list_sales(session)) == 3


class TestCancelAndUpdateSale:
    """Sale cancellation and updates."""

    def test_cancel_restores_stock_and_removes_receivables(self, session, user, customer, product):
        sale = create_sale(
            _sale_data(customer, 'crediario', installments=3),
            [{'product_id': product.id, 'quantity': 3, 'unit_price': '200.00'}],
            session,
            user_id=user.id
        )

        cancelled = cancel_sale(sale.id, session)

        assert cancelled.status == 'cancelled'
        assert session.get(Product, product.id).stock_quantity == 10
        assert session.query(FinancialAccount).count() == 0

    def test_cancel_twice_fails(self, session, user, customer, product):
        sale = create_sale(
            _sale_data(customer, 'pix', total='200.00'),
            [{'product_id': product.id, 'quantity': 1, 'unit_price': '200.00'}],
            session,
            user_id=user.id
        )
        cancel_sale(sale.id, session)

        with pytest.raises(BusinessLogicError) as exc:
            cancel_sale(sale.id, session)
        assert exc.value.status_code == 409

    def test_cancel_with_paid_installment_fails(self, session, user, customer, product):
        sale = create_sale(
            _sale_data(customer, 'crediario', installments=2, total='400.00'),
            [{'product_id': product.id, 'quantity': 2, 'unit_price': '200.00'}],
            session,
            user_id=user.id
        )
        first = sale.receivables[0]
        first.status = AccountStatus.PAID.value
        first.paid_date = date.today()
        session.commit()

        with pytest.raises(BusinessLogicError):
            cancel_sale(sale.id, session)
        assert session.get(Product, product.id).stock_quantity == 8

    def test_update_payment_status(self, session, user, customer, product):
        sale = create_sale(
            _sale_data(customer, 'pending', total='200.00'),
            [{'product_id': product.id, 'quantity': 1, 'unit_price': '200.00'}],
            session,
            user_id=user.id
        )

        updated = update_sale(sale.id, session, payment_status='paid', notes='  pago na entrega ')
        assert updated.payment_status == 'paid'
        assert updated.notes == 'pago na entrega'

        with pytest.raises(ValidationError):
            update_sale(sale.id, session, payment_status='refunded')

    def test_cancelled_sale_cannot_be_updated(self, session, user, customer, product):
        sale = create_sale(
            _sale_data(customer, 'pending', total='200.00'),
            [{'product_id': product.id, 'quantity': 1, 'unit_price': '200.00'}],
            session,
            user_id=user.id
        )
        cancel_sale(sale.id, session)

        with pytest.raises(BusinessLogicError) as exc:
            update_sale(sale.id, session, payment_status='paid')

        assert exc.value.status_code == 409
        assert session.get(Sale, sale.id).payment_status == 'pending'
