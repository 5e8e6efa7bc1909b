from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from datetime import datetime


class UserCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class UserSummary(BaseModel):
    """Public projection of an identity, used wherever a user is embedded"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: Optional[str] = None
    is_premium: bool = False


class User(UserSummary):
    created_at: datetime
    updated_at: Optional[datetime] = None
    friend_count: int = 0
