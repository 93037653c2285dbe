"""
Catalog models

Owned by the catalog management side of the shop. The ordering core reads
them (price, availability, option modifiers) and never writes them.
"""
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, DateTime, Text, Numeric
from sqlalchemy.orm import relationship

from brewhaven.core.database import Base
from brewhaven.core.utils import utcnow


class Item(Base):
    __tablename__ = "items"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(200), nullable=False)
    description = Column(Text)
    price = Column(Numeric(12, 2), nullable=False)
    is_available = Column(Boolean, nullable=False, default=True, index=True)
    preparation_time = Column(Integer)  # minutes

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    options = relationship("ItemOption", back_populates="item")


class ItemOption(Base):
    """Named price modifier (may be negative) scoped to one item."""
    __tablename__ = "item_options"

    id = Column(Integer, primary_key=True, index=True)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    price_modifier = Column(Numeric(12, 2), nullable=False, default=0)

    # Relationships
    item = relationship("Item", back_populates="options")
