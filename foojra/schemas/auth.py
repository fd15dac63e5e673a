"""
Foojra API — User & auth schemas
"""
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from foojra.models.user import UserRole
from foojra.schemas.common import Pagination


class UserAddress(BaseModel):
    street: str | None = None
    area: str | None = None
    city: str | None = "Gojra"
    postal_code: str | None = None


class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    role: UserRole = UserRole.CUSTOMER
    phone: str | None = Field(None, max_length=32)
    address: UserAddress | None = None


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=72)


class ProfileUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    phone: str | None = Field(None, max_length=32)
    address: UserAddress | None = None
    password: str | None = Field(None, min_length=6, max_length=72)


class RoleUpdateRequest(BaseModel):
    role: UserRole


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    role: UserRole
    phone: str | None
    address: UserAddress | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class AuthResponse(UserResponse):
    access_token: str
    token_type: str = "bearer"
    expires_in: int  # seconds


class UserListResponse(BaseModel):
    users: list[UserResponse]
    pagination: Pagination
