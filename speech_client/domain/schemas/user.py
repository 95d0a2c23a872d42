"""
User schemas.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema mapping snake_case fields to the backend's camelCase."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class User(CamelModel):
    """User response schema (GET /user/me)."""
    id: str
    email: EmailStr
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar: Optional[str] = None
    language: Optional[str] = None
    trial_used: bool = False
    created_at: datetime
    updated_at: datetime


class UpdateUserRequest(CamelModel):
    """User update schema (PATCH /user/me)."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    avatar: Optional[str] = None
