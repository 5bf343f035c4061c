import uuid
from datetime import datetime
from typing import List

from pydantic import BaseModel, Field, field_validator


class ProfileResponse(BaseModel):
    id: uuid.UUID
    full_name: str
    role: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    """Solo el nombre es editable; el rol no se cambia desde la API."""

    full_name: str = Field(..., min_length=3, max_length=100)

    @field_validator("full_name", mode="before")
    @classmethod
    def strip_full_name(cls, value):
        return value.strip() if isinstance(value, str) else value


class ProfileList(BaseModel):
    data: List[ProfileResponse]
    total: int
