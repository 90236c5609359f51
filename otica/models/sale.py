"""Sale model."""
import enum
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from otica.database import Base
from otica.utils.formatters import money_str, iso


class SaleStatus(str, enum.Enum):
    """Sale status enum."""
    ACTIVE = 'active'
    CANCELLED = 'cancelled'
    RETURNED = 'returned'


class PaymentStatus(str, enum.Enum):
    """Payment status of a sale."""
    PENDING = 'pending'
    PAID = 'paid'
    PARTIAL = 'partial'


class PaymentMethod(str, enum.Enum):
    """Payment methods accepted at the counter."""
    CASH = 'dinheiro'
    PIX = 'pix'
    CARD = 'cartao'
    CREDIARIO = 'crediario'  # store credit, paid in monthly installments
    PENDING = 'pending'  # to be defined when the customer pays


PAYMENT_METHOD_ALIASES = {
    'dinheiro': PaymentMethod.CASH,
    'cash': PaymentMethod.CASH,
    'pix': PaymentMethod.PIX,
    'cartao': PaymentMethod.CARD,
    'cartão': PaymentMethod.CARD,
    'card': PaymentMethod.CARD,
    'cartao_credito': PaymentMethod.CARD,
    'credit_card': PaymentMethod.CARD,
    'crediario': PaymentMethod.CREDIARIO,
    'crediário': PaymentMethod.CREDIARIO,
    'installment': PaymentMethod.CREDIARIO,
    'installment-credit': PaymentMethod.CREDIARIO,
    'pending': PaymentMethod.PENDING,
}


def normalize_payment_method(value) -> PaymentMethod:
    """
    Normalize a payment method tag into the closed PaymentMethod enum.

    Args:
        value: PaymentMethod enum or a string tag (aliases accepted, any case)

    Returns:
        PaymentMethod

    Raises:
        ValueError: If value is missing or not a known payment method
    """
    if isinstance(value, PaymentMethod):
        return value

    if value is None:
        raise ValueError('Forma de pagamento é obrigatória.')

    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in PAYMENT_METHOD_ALIASES:
            return PAYMENT_METHOD_ALIASES[normalized]

    raise ValueError(f"Forma de pagamento inválida: {value}")


def normalize_payment_status(value) -> PaymentStatus:
    """Normalize a payment status string into PaymentStatus (None means pending)."""
    if isinstance(value, PaymentStatus):
        return value
    if value is None:
        return PaymentStatus.PENDING
    try:
        return PaymentStatus(str(value).strip().lower())
    except ValueError:
        raise ValueError(f"Status de pagamento inválido: {value}")


class Sale(Base):
    """Sale (venda)."""

    __tablename__ = 'sale'

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey('customer.id'), nullable=False)
    user_id = Column(Integer, ForeignKey('app_user.id'), nullable=False)
    sale_number = Column(String(64), nullable=False, unique=True)
    total_amount = Column(Numeric(10, 2), nullable=False)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0, server_default='0')
    final_amount = Column(Numeric(10, 2), nullable=False)
    payment_method = Column(String(20), nullable=False)
    payment_status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value)
    installments = Column(Integer, nullable=False, default=1, server_default='1')
    status = Column(String(20), nullable=False, default=SaleStatus.ACTIVE.value)
    sale_date = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    notes = Column(Text, nullable=True)

    # Relationships
    customer = relationship('Customer', back_populates='sales')
    user = relationship('AppUser')
    items = relationship('SaleItem', back_populates='sale', cascade='all, delete-orphan',
                         order_by='SaleItem.id')
    receivables = relationship('FinancialAccount', back_populates='sale',
                               cascade='all, delete-orphan', order_by='FinancialAccount.due_date')

    def to_dict(self, with_items=False):
        data = {
            'id': self.id,
            'customerId': self.customer_id,
            'userId': self.user_id,
            'saleNumber': self.sale_number,
            'totalAmount': money_str(self.total_amount),
            'discountAmount': money_str(self.discount_amount),
            'finalAmount': money_str(self.final_amount),
            'paymentMethod': self.payment_method,
            'paymentStatus': self.payment_status,
            'installments': self.installments,
            'status': self.status,
            'saleDate': iso(self.sale_date),
            'notes': self.notes,
        }
        if with_items:
            data['items'] = [item.to_dict() for item in self.items]
            data['receivables'] = [account.to_dict() for account in self.receivables]
        return data

    def __repr__(self):
        return f"<Sale(id={self.id}, number='{self.sale_number}', final={self.final_amount}, status='{self.status}')>"
