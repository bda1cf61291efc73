from pydantic import BaseModel, ConfigDict, EmailStr
from typing import Literal, Optional
from datetime import datetime
from uuid import UUID

from statuses import UserRole


class UserCreate(BaseModel):
    name: str
    email: EmailStr
    role: Literal["buyer", "merchant", "admin"]
    business_name: Optional[str] = None
    city: Optional[str] = None


class UserResponse(BaseModel):
    id: UUID
    name: str
    email: EmailStr
    role: UserRole
    business_name: Optional[str] = None
    city: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
