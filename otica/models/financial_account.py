"""Financial account model (contas a receber / a pagar)."""
import enum
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Date, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from otica.database import Base
from otica.utils.formatters import money_str, iso


class AccountType(str, enum.Enum):
    """Financial account type."""
    RECEIVABLE = 'receivable'
    PAYABLE = 'payable'


class AccountStatus(str, enum.Enum):
    """Financial account status."""
    PENDING = 'pending'
    PAID = 'paid'
    OVERDUE = 'overdue'


class FinancialAccount(Base):
    """
    One amount owed with a due date.

    Receivables derived from a sale point back to it through sale_id and are
    removed together with the sale.
    """

    __tablename__ = 'financial_account'

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey('customer.id'), nullable=True)
    sale_id = Column(Integer, ForeignKey('sale.id', ondelete='CASCADE'), nullable=True)
    type = Column(String(20), nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    due_date = Column(Date, nullable=False)
    paid_date = Column(Date, nullable=True)
    status = Column(String(20), nullable=False, default=AccountStatus.PENDING.value)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    sale = relationship('Sale', back_populates='receivables')
    customer = relationship('Customer')

    def to_dict(self):
        return {
            'id': self.id,
            'customerId': self.customer_id,
            'saleId': self.sale_id,
            'type': self.type,
            'description': self.description,
            'amount': money_str(self.amount),
            'dueDate': iso(self.due_date),
            'paidDate': iso(self.paid_date),
            'status': self.status,
            'createdAt': iso(self.created_at),
        }

    def __repr__(self):
        return f"<FinancialAccount(id={self.id}, type='{self.type}', amount={self.amount}, due={self.due_date})>"
