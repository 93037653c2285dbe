"""
Cart models

One cart per user. Cart lines are not priced at rest; prices are derived from
the catalog whenever the cart is read or checked out.
"""
from sqlalchemy import Column, Integer, ForeignKey, DateTime, Text, Index
from sqlalchemy.orm import relationship

from brewhaven.core.database import Base
from brewhaven.core.utils import utcnow


class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    user = relationship("User", back_populates="cart")
    items = relationship(
        "CartItem",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItem.id",
    )


class CartItem(Base):
    __tablename__ = "cart_items"

    id = Column(Integer, primary_key=True, index=True)
    cart_id = Column(Integer, ForeignKey("carts.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="CASCADE"), nullable=False, index=True)

    quantity = Column(Integer, nullable=False, default=1)
    notes = Column(Text)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    cart = relationship("Cart", back_populates="items")
    item = relationship("Item")
    options = relationship(
        "CartItemOption",
        back_populates="cart_item",
        cascade="all, delete-orphan",
        order_by="CartItemOption.id",
    )

    __table_args__ = (
        Index("ix_cart_items_cart_item", "cart_id", "item_id"),
    )


class CartItemOption(Base):
    __tablename__ = "cart_item_options"

    id = Column(Integer, primary_key=True, index=True)
    cart_item_id = Column(Integer, ForeignKey("cart_items.id", ondelete="CASCADE"), nullable=False, index=True)
    option_id = Column(Integer, ForeignKey("item_options.id", ondelete="CASCADE"), nullable=False, index=True)

    # Relationships
    cart_item = relationship("CartItem", back_populates="options")
    option = relationship("ItemOption")
