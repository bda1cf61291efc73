import datetime
from decimal import Decimal
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from typing import Literal, Optional, Union
from uuid import UUID

from statuses import RequirementStatus

Grade = Literal["W180", "W240", "W320", "SW240", "SW320", "mixed"]
Origin = Literal["india", "vietnam", "ghana", "tanzania", "any"]

# free-text numeric entry ("1,000", "500 kg") is normalized by the quantity policy
NumericInput = Union[Decimal, str]


class RequirementBase(BaseModel):
    grade: Grade
    origin: Origin = "any"
    required_quantity: NumericInput
    minimum_quantity: NumericInput
    expected_price: NumericInput
    allow_lower_bid: bool = False
    delivery_location: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    delivery_deadline: datetime.date
    specifications: Optional[str] = None
    is_draft: bool = False


class RequirementCreate(RequirementBase):
    buyer_id: UUID


class RequirementUpdate(BaseModel):
    buyer_id: UUID
    grade: Optional[Grade] = None
    origin: Optional[Origin] = None
    required_quantity: Optional[NumericInput] = None
    minimum_quantity: Optional[NumericInput] = None
    expected_price: Optional[NumericInput] = None
    allow_lower_bid: Optional[bool] = None
    delivery_location: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    delivery_deadline: Optional[datetime.date] = None
    specifications: Optional[str] = None
    is_draft: Optional[bool] = None


class RequirementAction(BaseModel):
    user_id: UUID


class RequirementRead(BaseModel):
    """
    Canonical requirement shape.

    Accepts the key spellings the web client and older API responses used,
    so every consumer only ever sees one schema.
    """
    id: UUID = Field(validation_alias=AliasChoices("id", "_id", "ID", "requirementId"))
    buyer_id: UUID = Field(validation_alias=AliasChoices("buyer_id", "buyerId", "customerId"))
    grade: str
    origin: str = Field(validation_alias=AliasChoices("origin", "preferredOrigin"))
    required_quantity: Decimal = Field(validation_alias=AliasChoices("required_quantity", "requiredQuantity", "quantity"))
    minimum_quantity: Decimal = Field(
        validation_alias=AliasChoices("minimum_quantity", "minimumQuantity", "minSupplyQuantity", "minQty")
    )
    expected_price: Decimal = Field(validation_alias=AliasChoices("expected_price", "expectedPrice"))
    allow_lower_bid: bool = Field(False, validation_alias=AliasChoices("allow_lower_bid", "allowLowerBid"))
    delivery_location: Optional[str] = Field(None, validation_alias=AliasChoices("delivery_location", "deliveryLocation"))
    city: Optional[str] = None
    country: Optional[str] = None
    delivery_deadline: datetime.date = Field(validation_alias=AliasChoices("delivery_deadline", "deliveryDeadline"))
    specifications: Optional[str] = None
    is_draft: bool = Field(False, validation_alias=AliasChoices("is_draft", "isDraft"))
    status: RequirementStatus
    created_at: Optional[datetime.datetime] = Field(None, validation_alias=AliasChoices("created_at", "createdAt"))
    updated_at: Optional[datetime.datetime] = Field(
        None, validation_alias=AliasChoices("updated_at", "updatedAt", "lastModified")
    )
    quote_count: Optional[int] = Field(None, validation_alias=AliasChoices("quote_count", "quoteCount"))
    pending: bool = False

    model_config = ConfigDict(from_attributes=True)
