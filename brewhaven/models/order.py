"""
Order models

An order is a frozen checkout: unit prices and option modifiers are copied
onto OrderItem / OrderItemOption at creation and never re-read from the
catalog. total_amount == subtotal + tax - discount at creation time.
"""
from enum import Enum as PyEnum

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Text, Numeric, Index, Enum
from sqlalchemy.orm import relationship

from brewhaven.core.database import Base
from brewhaven.core.utils import utcnow


class OrderStatus(str, PyEnum):
    """
    PENDING -> PREPARING -> READY -> COMPLETED, CANCELLED from any
    non-terminal state. Only PENDING -> PREPARING is automated (payment
    marked PAID); the rest are staff writes.
    """
    PENDING = "PENDING"
    PREPARING = "PREPARING"
    READY = "READY"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


TERMINAL_ORDER_STATUSES = frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED})


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Storage-level guard against concurrent generators picking the same number
    order_number = Column(String(50), unique=True, index=True, nullable=False)
    status = Column(
        Enum(OrderStatus, name="order_status"),
        nullable=False,
        default=OrderStatus.PENDING,
        index=True,
    )

    # Pricing
    subtotal = Column(Numeric(12, 2), nullable=False)
    discount = Column(Numeric(12, 2), nullable=False, default=0)
    tax = Column(Numeric(12, 2), nullable=False, default=0)
    total_amount = Column(Numeric(12, 2), nullable=False)

    notes = Column(Text)

    # Timestamps
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
    completed_at = Column(DateTime(timezone=True))

    # Relationships
    user = relationship("User", back_populates="orders")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.id",
    )
    payment = relationship(
        "Payment",
        back_populates="order",
        uselist=False,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_orders_user_id", "user_id"),
    )


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("items.id", ondelete="SET NULL"), nullable=True, index=True)

    # Snapshot of the catalog at time of order
    item_name = Column(String(200), nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    quantity = Column(Integer, nullable=False)
    notes = Column(Text)

    # Relationships
    order = relationship("Order", back_populates="items")
    item = relationship("Item")
    options = relationship(
        "OrderItemOption",
        back_populates="order_item",
        cascade="all, delete-orphan",
        order_by="OrderItemOption.id",
    )


class OrderItemOption(Base):
    __tablename__ = "order_item_options"

    id = Column(Integer, primary_key=True, index=True)
    order_item_id = Column(Integer, ForeignKey("order_items.id", ondelete="CASCADE"), nullable=False, index=True)
    option_id = Column(Integer, ForeignKey("item_options.id", ondelete="SET NULL"), nullable=True, index=True)

    # Snapshot
    option_name = Column(String(200), nullable=False)
    price_modifier = Column(Numeric(12, 2), nullable=False)

    # Relationships
    order_item = relationship("OrderItem", back_populates="options")
    option = relationship("ItemOption")
