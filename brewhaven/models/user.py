"""
User model

Accounts are managed by the auth service; the ordering core only reads a
user's id, role and active flag to build a principal.
"""
from enum import Enum as PyEnum

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum
from sqlalchemy.orm import relationship

from brewhaven.core.database import Base
from brewhaven.core.utils import utcnow


class UserRoleName(str, PyEnum):
    ADMIN = "ADMIN"
    STAFF = "STAFF"
    USER = "USER"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    first_name = Column(String(100))
    last_name = Column(String(100))
    role = Column(Enum(UserRoleName, name="user_role"), nullable=False, default=UserRoleName.USER)
    is_active = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    orders = relationship("Order", back_populates="user")
    cart = relationship("Cart", back_populates="user", uselist=False)
