"""Quote model for orçamentos."""
import enum
from datetime import date
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Date, Text, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from otica.database import Base
from otica.utils.formatters import money_str, iso


class QuoteStatus(str, enum.Enum):
    """Quote status enum."""
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'
    CONVERTED = 'converted'


# Statuses from which a quote may still become a sale
CONVERTIBLE_STATUSES = (QuoteStatus.PENDING.value, QuoteStatus.APPROVED.value)


class Quote(Base):
    """
    Quote (Orçamento).

    A quote can be converted to a sale exactly once, at which point its status
    becomes CONVERTED and it is frozen.
    """

    __tablename__ = 'quote'

    id = Column(Integer, primary_key=True, autoincrement=True)
    customer_id = Column(Integer, ForeignKey('customer.id'), nullable=False)
    user_id = Column(Integer, ForeignKey('app_user.id'), nullable=False)
    quote_number = Column(String(64), nullable=False, unique=True)
    total_amount = Column(Numeric(10, 2), nullable=False)
    discount_amount = Column(Numeric(10, 2), nullable=False, default=0, server_default='0')
    final_amount = Column(Numeric(10, 2), nullable=False)
    status = Column(String(20), nullable=False, default=QuoteStatus.PENDING.value)
    valid_until = Column(Date, nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    customer = relationship('Customer', back_populates='quotes')
    user = relationship('AppUser')
    items = relationship('QuoteItem', back_populates='quote', cascade='all, delete-orphan',
                         order_by='QuoteItem.id')

    @property
    def is_expired(self):
        """Check if quote is expired (calculated, not stored)."""
        if self.status in CONVERTIBLE_STATUSES and self.valid_until:
            return date.today() > self.valid_until
        return False

    @property
    def is_convertible(self):
        """Check if quote can be converted to sale."""
        return self.status in CONVERTIBLE_STATUSES and not self.is_expired

    def to_dict(self, with_items=False):
        data = {
            'id': self.id,
            'customerId': self.customer_id,
            'userId': self.user_id,
            'quoteNumber': self.quote_number,
            'totalAmount': money_str(self.total_amount),
            'discountAmount': money_str(self.discount_amount),
            'finalAmount': money_str(self.final_amount),
            'status': self.status,
            'validUntil': iso(self.valid_until),
            'notes': self.notes,
            'createdAt': iso(self.created_at),
        }
        if with_items:
            data['items'] = [item.to_dict() for item in self.items]
            data['customer'] = self.customer.to_dict() if self.customer else None
        return data

    def __repr__(self):
        return f"<Quote(id={self.id}, number='{self.quote_number}', status='{self.status}', final={self.final_amount})>"
