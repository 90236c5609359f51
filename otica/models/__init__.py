"""Models package - exports all SQLAlchemy models."""
from otica.models.user import AppUser
from otica.models.customer import Customer
from otica.models.product import Product
from otica.models.quote import Quote, QuoteStatus, CONVERTIBLE_STATUSES
from otica.models.quote_item import QuoteItem
from otica.models.sale import (
    Sale, SaleStatus, PaymentStatus, PaymentMethod,
    normalize_payment_method, normalize_payment_status
)
from otica.models.sale_item import SaleItem
from otica.models.financial_account import FinancialAccount, AccountType, AccountStatus

__all__ = [
    'AppUser', 'Customer', 'Product',
    'Quote', 'QuoteStatus', 'CONVERTIBLE_STATUSES', 'QuoteItem',
    'Sale', 'SaleStatus', 'PaymentStatus', 'PaymentMethod',
    'normalize_payment_method', 'normalize_payment_status', 'SaleItem',
    'FinancialAccount', 'AccountType', 'AccountStatus',
]
