from decimal import Decimal
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Optional
from uuid import UUID
from datetime import datetime

from statuses import OrderStatus
from schemas.quote_schema import QuoteRead
from schemas.requirement_schema import RequirementRead


class OrderAction(BaseModel):
    user_id: UUID


class OrderOut(BaseModel):
    id: UUID = Field(validation_alias=AliasChoices("id", "_id", "ID", "orderId"))
    requirement_id: UUID = Field(validation_alias=AliasChoices("requirement_id", "requirementId"))
    quote_id: UUID = Field(validation_alias=AliasChoices("quote_id", "quoteId", "responseId"))
    buyer_id: UUID = Field(validation_alias=AliasChoices("buyer_id", "buyerId"))
    merchant_id: UUID = Field(validation_alias=AliasChoices("merchant_id", "merchantId"))
    status: OrderStatus
    quantity: Decimal
    price: Decimal = Field(validation_alias=AliasChoices("price", "unitPrice"))
    total_price: Decimal = Field(validation_alias=AliasChoices("total_price", "totalAmount"))
    created_at: Optional[datetime] = Field(None, validation_alias=AliasChoices("created_at", "createdAt", "orderDate"))

    model_config = ConfigDict(from_attributes=True)


class TransactionOut(BaseModel):
    requirement: RequirementRead
    quote: QuoteRead
    order: Optional[OrderOut] = None

    model_config = ConfigDict(from_attributes=True)
