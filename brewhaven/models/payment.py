"""
Payment model

Exactly one payment per order: the unique constraint on order_id backs the
service-level check so concurrent creators cannot both succeed.
"""
from enum import Enum as PyEnum

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Numeric, Enum
from sqlalchemy.orm import relationship

from brewhaven.core.database import Base
from brewhaven.core.utils import utcnow


class PaymentStatus(str, PyEnum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


class PaymentMethod(str, PyEnum):
    CASH = "CASH"
    CREDIT_CARD = "CREDIT_CARD"
    DEBIT_CARD = "DEBIT_CARD"
    MOBILE_PAYMENT = "MOBILE_PAYMENT"


VALID_PAYMENT_TRANSITIONS = {
    PaymentStatus.PENDING: [
        PaymentStatus.PAID,
        PaymentStatus.FAILED,
    ],
    PaymentStatus.PAID: [
        PaymentStatus.REFUNDED,
    ],
    PaymentStatus.FAILED: [],
    PaymentStatus.REFUNDED: [],
}


def is_valid_payment_transition(current: PaymentStatus, new: PaymentStatus) -> bool:
    """Check the payment state machine."""
    return new in VALID_PAYMENT_TRANSITIONS.get(current, [])


class Payment(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(Enum(PaymentMethod, name="payment_method"), nullable=False)
    status = Column(
        Enum(PaymentStatus, name="payment_status"),
        nullable=False,
        default=PaymentStatus.PENDING,
        index=True,
    )
    transaction_id = Column(String(255))
    payment_date = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    order = relationship("Order", back_populates="payment")
