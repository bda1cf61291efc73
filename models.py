import uuid

from sqlalchemy import (
    Boolean, Column, DateTime, Enum, Numeric, String, Text, Date,
    ForeignKey, Index, Uuid, func, text
)
from sqlalchemy.orm import relationship
from database import Base
from statuses import OrderStatus, QuoteStatus, RequirementStatus, UserRole


def _values(enum_cls):
    return [member.value for member in enum_cls]


class User(Base):
    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    role = Column(Enum(UserRole, name="user_roles", values_callable=_values), nullable=False)
    business_name = Column(String, nullable=True)
    city = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    requirements = relationship("Requirement", back_populates="buyer", cascade="all, delete")
    quotes = relationship("Quote", back_populates="merchant", cascade="all, delete")


class Requirement(Base):
    __tablename__ = "requirements"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    buyer_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    grade = Column(String, nullable=False)
    origin = Column(String, nullable=False, default="any")
    required_quantity = Column(Numeric(14, 2), nullable=False)
    minimum_quantity = Column(Numeric(14, 2), nullable=False)
    expected_price = Column(Numeric(14, 2), nullable=False)
    allow_lower_bid = Column(Boolean, nullable=False, default=False)
    delivery_location = Column(String, nullable=True)
    city = Column(String, nullable=True)
    country = Column(String, nullable=True)
    delivery_deadline = Column(Date, nullable=False)
    specifications = Column(Text, nullable=True)
    is_draft = Column(Boolean, nullable=False, default=False)
    status = Column(
        Enum(RequirementStatus, name="requirement_statuses", values_callable=_values),
        nullable=False, default=RequirementStatus.active,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    buyer = relationship("User", back_populates="requirements")
    quotes = relationship("Quote", back_populates="requirement", cascade="all, delete", order_by="Quote.created_at")
    orders = relationship("Order", back_populates="requirement", cascade="all, delete")


class Quote(Base):
    __tablename__ = "quotes"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    requirement_id = Column(Uuid, ForeignKey("requirements.id"), nullable=False, index=True)
    merchant_id = Column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    quantity = Column(Numeric(14, 2), nullable=False)
    price = Column(Numeric(14, 2), nullable=False)
    remarks = Column(Text, nullable=True)
    status = Column(
        Enum(QuoteStatus, name="quote_statuses", values_callable=_values),
        nullable=False, default=QuoteStatus.new,
    )
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    requirement = relationship("Requirement", back_populates="quotes")
    merchant = relationship("User", back_populates="quotes")

    __table_args__ = (
        # at most one accepted quote per requirement
        Index(
            "uq_quotes_one_accepted_per_requirement",
            "requirement_id",
            unique=True,
            sqlite_where=text("status = 'accepted'"),
            postgresql_where=text("status = 'accepted'"),
        ),
    )


class Order(Base):
    __tablename__ = "orders"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    requirement_id = Column(Uuid, ForeignKey("requirements.id"), nullable=False, unique=True)
    quote_id = Column(Uuid, ForeignKey("quotes.id"), nullable=False)
    buyer_id = Column(Uuid, ForeignKey("users.id"), nullable=False)
    merchant_id = Column(Uuid, ForeignKey("users.id"), nullable=False)

    status = Column(
        Enum(OrderStatus, name="order_statuses", values_callable=_values),
        nullable=False, default=OrderStatus.placed,
    )

    quantity = Column(Numeric(14, 2), nullable=False)
    price = Column(Numeric(14, 2), nullable=False)
    total_price = Column(Numeric(16, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    requirement = relationship("Requirement", back_populates="orders")
    quote = relationship("Quote")
    buyer = relationship("User", foreign_keys=[buyer_id])
    merchant = relationship("User", foreign_keys=[merchant_id])
