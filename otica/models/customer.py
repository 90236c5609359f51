"""Customer model."""
from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from otica.database import Base
from otica.utils.formatters import iso


class Customer(Base):
    """Customer (cliente da ótica)."""

    __tablename__ = 'customer'

    id = Column(Integer, primary_key=True, autoincrement=True)
    full_name = Column(String(200), nullable=False)
    cpf = Column(String(14), nullable=True, unique=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    # Relationships
    sales = relationship('Sale', back_populates='customer')
    quotes = relationship('Quote', back_populates='customer')

    def to_dict(self):
        return {
            'id': self.id,
            'fullName': self.full_name,
            'cpf': self.cpf,
            'phone': self.phone,
            'email': self.email,
            'notes': self.notes,
            'isActive': self.is_active,
            'createdAt': iso(self.created_at),
        }

    def __repr__(self):
        return f"<Customer(id={self.id}, name='{self.full_name}')>"
