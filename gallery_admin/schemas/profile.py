"""Profile schemas."""
from pydantic import BaseModel, EmailStr, Field


class ProfileUpdate(BaseModel):
    email: EmailStr | None = None
    name: str | None = Field(default=None, max_length=120)
