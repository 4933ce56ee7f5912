from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, EmailStr, ConfigDict
from fieldportal.schemas.role import RoleRead


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class UserRead(BaseModel):
    id: int
    email: EmailStr
    full_name: Optional[str] = None
    phone: Optional[str] = None
    city: Optional[str] = None
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: datetime
    role: RoleRead

    model_config = ConfigDict(from_attributes=True)


class UserCreate(BaseModel):
    """Add an email to the allow-list."""
    email: EmailStr
    full_name: Optional[str] = Field(None, max_length=200)
    phone: Optional[str] = Field(None, max_length=32)
    city: Optional[str] = Field(None, max_length=100)
    role: str = "staff"


class SetRoleRequest(BaseModel):
    role: str


class MasterPasswordChange(BaseModel):
    new_password: str = Field(min_length=8)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserRead
