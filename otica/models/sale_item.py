"""Sale Item model."""
from sqlalchemy import Column, Integer, Numeric, ForeignKey
from sqlalchemy.orm import relationship
from otica.database import Base
from otica.utils.formatters import money_str


class SaleItem(Base):
    """Sale Item (item de venda)."""

    __tablename__ = 'sale_item'

    id = Column(Integer, primary_key=True, autoincrement=True)
    sale_id = Column(Integer, ForeignKey('sale.id', ondelete='CASCADE'), nullable=False)
    product_id = Column(Integer, ForeignKey('product.id'), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    total_price = Column(Numeric(10, 2), nullable=False)

    # Relationships
    sale = relationship('Sale', back_populates='items')
    product = relationship('Product')

    def to_dict(self):
        return {
            'id': self.id,
            'saleId': self.sale_id,
            'productId': self.product_id,
            'productName': self.product.name if self.product else None,
            'quantity': self.quantity,
            'unitPrice': money_str(self.unit_price),
            'totalPrice': money_str(self.total_price),
        }

    def __repr__(self):
        return f"<SaleItem(id={self.id}, product_id={self.product_id}, qty={self.quantity})>"
