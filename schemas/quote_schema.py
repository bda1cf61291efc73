from decimal import Decimal
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import List, Literal, Optional
from datetime import datetime
from uuid import UUID

from statuses import QuoteStatus
from schemas.requirement_schema import NumericInput, RequirementRead


class QuoteCreate(BaseModel):
    merchant_id: UUID = Field(validation_alias=AliasChoices("merchant_id", "merchantId", "MerchantID"))
    quantity: NumericInput = Field(validation_alias=AliasChoices("quantity", "supplyQtyKg", "SupplyQtyKg", "supply_qty"))
    price: NumericInput = Field(validation_alias=AliasChoices("price", "priceINR", "PriceINR"))
    remarks: Optional[str] = Field(None, validation_alias=AliasChoices("remarks", "Remarks"))


class QuoteRead(BaseModel):
    id: UUID = Field(validation_alias=AliasChoices("id", "_id", "ID", "quoteId"))
    requirement_id: UUID = Field(validation_alias=AliasChoices("requirement_id", "requirementId"))
    merchant_id: UUID = Field(validation_alias=AliasChoices("merchant_id", "merchantId", "MerchantID", "merchantID"))
    quantity: Decimal = Field(validation_alias=AliasChoices("quantity", "supplyQtyKg", "SupplyQtyKg", "supply_qty"))
    price: Decimal = Field(validation_alias=AliasChoices("price", "priceINR", "PriceINR"))
    remarks: Optional[str] = Field(None, validation_alias=AliasChoices("remarks", "Remarks"))
    status: QuoteStatus = QuoteStatus.new
    created_at: Optional[datetime] = Field(None, validation_alias=AliasChoices("created_at", "createdAt", "CreatedAt"))
    pending: bool = False

    model_config = ConfigDict(from_attributes=True)


class QuoteAction(BaseModel):
    buyer_id: UUID
    action: Literal["accept", "reject"]


class QuotesWithRequirement(BaseModel):
    requirement: RequirementRead
    quotes: List[QuoteRead]


class MerchantQuote(BaseModel):
    quote: QuoteRead
    requirement: RequirementRead
