"""
Unit tests for SQLAlchemy models and payment enums.
"""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from otica.models import (
    AppUser, Product, Quote, QuoteStatus, PaymentMethod, PaymentStatus,
    normalize_payment_method, normalize_payment_status
)


class TestPaymentEnums:
    """Tests for payment method/status normalization."""

    @pytest.mark.parametrize('raw,expected', [
        ('dinheiro', PaymentMethod.CASH),
        ('PIX', PaymentMethod.PIX),
        (' cartao ', PaymentMethod.CARD),
        ('cartão', PaymentMethod.CARD),
        ('crediario', PaymentMethod.CREDIARIO),
        ('installment', PaymentMethod.CREDIARIO),
        ('pending', PaymentMethod.PENDING),
        (PaymentMethod.PIX, PaymentMethod.PIX),
    ])
    def test_known_methods(self, raw, expected):
        assert normalize_payment_method(raw) is expected

    @pytest.mark.parametrize('raw', [None, '', 'boleto', 3])
    def test_unknown_methods_rejected(self, raw):
        with pytest.raises(ValueError):
            normalize_payment_method(raw)

    def test_payment_status_defaults_to_pending(self):
        assert normalize_payment_status(None) is PaymentStatus.PENDING
        assert normalize_payment_status('Paid') is PaymentStatus.PAID

    def test_invalid_payment_status(self):
        with pytest.raises(ValueError):
            normalize_payment_status('refunded')


class TestQuoteModel:
    """Tests for Quote computed properties."""

    def _quote(self, status, valid_until):
        return Quote(
            quote_number='ORC-TEST',
            total_amount=Decimal('600.00'),
            discount_amount=Decimal('0.00'),
            final_amount=Decimal('600.00'),
            status=status,
            valid_until=valid_until
        )

    def test_pending_quote_is_convertible(self):
        quote = self._quote(QuoteStatus.PENDING.value, date.today())
        assert quote.is_expired is False
        assert quote.is_convertible is True

    def test_expired_quote(self):
        quote = self._quote(QuoteStatus.APPROVED.value, date.today() - timedelta(days=1))
        assert quote.is_expired is True
        assert quote.is_convertible is False

    @pytest.mark.parametrize('status', [QuoteStatus.REJECTED.value, QuoteStatus.CONVERTED.value])
    def test_closed_quote_not_convertible(self, status):
        quote = self._quote(status, date.today() + timedelta(days=5))
        assert quote.is_convertible is False

    def test_to_dict_serializes_money_and_dates(self):
        valid_until = date(2026, 5, 1)
        data = self._quote(QuoteStatus.PENDING.value, valid_until).to_dict()
        assert data['finalAmount'] == '600.00'
        assert data['validUntil'] == '2026-05-01'
        assert data['status'] == 'pending'


class TestAppUserModel:
    """Tests for AppUser model."""

    def test_password_hashing(self):
        user = AppUser(email='user@test.com', active=True)
        user.set_password('mypassword')

        assert user.password_hash != 'mypassword'
        assert user.check_password('mypassword') is True
        assert user.check_password('wrongpassword') is False

    def test_user_without_password_cannot_log_in(self):
        assert AppUser(email='nopass@test.com').check_password('') is False

    def test_user_email_unique(self, session, user):
        session.add(AppUser(email=user.email, full_name='Duplicate User'))

        with pytest.raises(Exception):  # IntegrityError
            session.commit()


class TestProductModel:
    """Tests for Product model."""

    def test_low_stock(self, session, lens):
        assert lens.is_low_stock is True

    def test_sku_unique(self, session, product):
        session.add(Product(name='Copy', sku=product.sku, sale_price=Decimal('10.00')))

        with pytest.raises(Exception):  # IntegrityError
            session.commit()
