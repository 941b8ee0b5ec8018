# helpdesk/schemas/auth.py
from __future__ import annotations
from pydantic import BaseModel, EmailStr, Field

from helpdesk.schemas.users import UserOut


class LoginIn(BaseModel):
    username: EmailStr
    password: str


class RegisterIn(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8, max_length=128)
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    department: str | None = Field(default=None, max_length=100)
    phone: str | None = Field(default=None, max_length=20)


class TokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut
