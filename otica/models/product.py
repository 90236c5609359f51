"""Product model."""
from sqlalchemy import Column, Integer, String, Boolean, Numeric, DateTime, Text
from sqlalchemy.sql import func
from otica.database import Base
from otica.utils.formatters import money_str, iso


class Product(Base):
    """Product (armações, lentes, acessórios)."""

    __tablename__ = 'product'

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    sku = Column(String, nullable=False, unique=True)
    barcode = Column(String, nullable=True)
    brand = Column(String, nullable=True)
    description = Column(Text, nullable=True)
    cost_price = Column(Numeric(10, 2), nullable=True)
    sale_price = Column(Numeric(10, 2), nullable=False)
    # Decremented only through a guarded UPDATE (sales_service._decrement_stock)
    stock_quantity = Column(Integer, nullable=False, default=0, server_default='0')
    min_stock_level = Column(Integer, nullable=False, default=5, server_default='5')
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    @property
    def is_low_stock(self):
        return (self.stock_quantity or 0) <= (self.min_stock_level or 0)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'sku': self.sku,
            'barcode': self.barcode,
            'brand': self.brand,
            'description': self.description,
            'costPrice': money_str(self.cost_price),
            'salePrice': money_str(self.sale_price),
            'stockQuantity': self.stock_quantity,
            'minStockLevel': self.min_stock_level,
            'lowStock': self.is_low_stock,
            'isActive': self.is_active,
            'createdAt': iso(self.created_at),
        }

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', sku='{self.sku}')>"
