"""QuoteItem model for quote line items."""
from sqlalchemy import Column, Integer, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from otica.database import Base
from otica.utils.formatters import money_str


class QuoteItem(Base):
    """Quote Item (item de orçamento)."""

    __tablename__ = 'quote_item'

    id = Column(Integer, primary_key=True, autoincrement=True)
    quote_id = Column(Integer, ForeignKey('quote.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(Integer, ForeignKey('product.id'), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)

    # Relationships
    quote = relationship('Quote', back_populates='items')
    product = relationship('Product')

    def to_dict(self):
        return {
            'id': self.id,
            'quoteId': self.quote_id,
            'productId': self.product_id,
            'quantity': self.quantity,
            'unitPrice': money_str(self.unit_price),
            'totalPrice': money_str(self.total_price),
        }

    def __repr__(self):
        return f"<QuoteItem(id={self.id}, quote_id={self.quote_id}, product_id={self.product_id}, qty={self.quantity})>"
