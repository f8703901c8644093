from pydantic import BaseModel, EmailStr, Field
from datetime import datetime

from lims.core.permissions import Capability
from lims.models.users import UserRole


class UserCreate(BaseModel):
    email: EmailStr = Field(..., description="User's email address")
    password: str = Field(..., min_length=8, max_length=72, description="Plain password (will be hashed). Minimum 8 characters.")
    username: str | None = Field(None, min_length=1, description="Defaults to the local part of the email")
    first_name: str | None = None
    last_name: str | None = None
    role: UserRole = UserRole.USER


class UserSignup(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=72)
    first_name: str | None = None
    last_name: str | None = None


class UserUpdate(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    role: UserRole | None = None
    is_active: bool | None = None
    password: str | None = Field(None, min_length=8, max_length=72)


class UserSummary(BaseModel):
    id: int
    first_name: str | None
    last_name: str | None
    full_name: str

    class Config:
        from_attributes = True


class UserResponse(BaseModel):
    id: int
    username: str
    email: EmailStr
    first_name: str | None
    last_name: str | None
    role: UserRole
    is_active: bool
    created_at: datetime
    last_login_at: datetime | None

    class Config:
        from_attributes = True


class CurrentUserResponse(UserResponse):
    capabilities: list[Capability]
