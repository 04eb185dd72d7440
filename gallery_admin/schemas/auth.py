"""Authentication schemas."""
from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from gallery_admin.schemas.user import UserRead


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class LoginResponse(BaseModel):
    token: str
    expires_at: datetime
    user: UserRead


class PasswordChangeRequest(BaseModel):
    current_password: str
    new_password: str = Field(min_length=8, max_length=128)
