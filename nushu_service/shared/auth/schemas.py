"""Pydantic schemas for admin authentication requests and responses."""

from pydantic import BaseModel
from typing import Optional


class LoginRequest(BaseModel):
    """Login request schema. Presence is checked by the route so a missing
    field yields the same 400 as an empty one."""
    username: Optional[str] = None
    password: Optional[str] = None


class AdminIdentity(BaseModel):
    username: str
    role: str


class LoginData(BaseModel):
    token: str
    token_type: str = "bearer"
    user: AdminIdentity


class LoginResponse(BaseModel):
    success: bool = True
    message: str
    data: LoginData


class VerifyResponse(BaseModel):
    success: bool = True
    message: str
    data: AdminIdentity
