"""Pydantic schemas for contact API."""

from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List, Dict
from datetime import datetime
from enum import Enum

from nushu_service.shared.input_validation import (
    require_text,
    optional_text,
    trim_email,
    MAX_NAME_LENGTH,
    MAX_MESSAGE_LENGTH,
    MAX_RESPONSE_LENGTH,
)


class ContactStatus(str, Enum):
    """Moderation status of a submission."""
    NEW = "new"
    READ = "read"
    RESPONDED = "responded"
    ARCHIVED = "archived"


class ContactRequest(BaseModel):
    """Schema for contact form submission."""
    # Optional at the type level so a missing field reaches the validators
    # and is reported like a blank one
    name: Optional[str] = Field(None, validate_default=True)
    email: Optional[EmailStr] = Field(None, validate_default=True)
    message: Optional[str] = Field(None, validate_default=True)
    interested_event: Optional[str] = Field(None, alias="interestedEvent", validate_default=True)

    class Config:
        populate_by_name = True

    @field_validator('name', mode='after')
    @classmethod
    def validate_name(cls, v):
        return require_text(v, "Name", MAX_NAME_LENGTH)

    @field_validator('email', mode='before')
    @classmethod
    def strip_email(cls, v):
        return trim_email(v)

    @field_validator('email', mode='after')
    @classmethod
    def lowercase_email(cls, v):
        # EmailStr only normalizes the domain
        return v.lower()

    @field_validator('message', mode='after')
    @classmethod
    def validate_message(cls, v):
        return require_text(v, "Message", MAX_MESSAGE_LENGTH)

    @field_validator('interested_event', mode='after')
    @classmethod
    def validate_interested_event(cls, v):
        return optional_text(v, "Interested event")


class ContactUpdateRequest(BaseModel):
    """Schema for an admin status change, optionally attaching a response."""
    status: ContactStatus
    response: Optional[str] = None

    @field_validator('response')
    @classmethod
    def validate_response(cls, v):
        if v is None:
            return None
        cleaned = optional_text(v, "Response", MAX_RESPONSE_LENGTH)
        return cleaned or None


class ContactSubmissionOut(BaseModel):
    """A stored submission as returned to admins (camelCase keys)."""
    id: str
    name: str
    email: str
    message: str
    interested_event: str = Field("", serialization_alias="interestedEvent")
    status: ContactStatus
    ip_address: Optional[str] = Field(None, serialization_alias="ipAddress")
    user_agent: Optional[str] = Field(None, serialization_alias="userAgent")
    response: Optional[str] = None
    responded_at: Optional[datetime] = Field(None, serialization_alias="respondedAt")
    created_at: datetime = Field(..., serialization_alias="createdAt")
    updated_at: datetime = Field(..., serialization_alias="updatedAt")

    class Config:
        from_attributes = True


class SubmissionReceipt(BaseModel):
    id: str
    timestamp: datetime


class ContactSubmitResponse(BaseModel):
    """Schema for contact form response."""
    success: bool = True
    message: str
    data: SubmissionReceipt


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    pages: int


class StatusCounts(BaseModel):
    new: int = 0
    read: int = 0
    responded: int = 0
    archived: int = 0
    total: int = 0


class ContactListData(BaseModel):
    contacts: List[ContactSubmissionOut]
    pagination: Pagination
    status_counts: StatusCounts = Field(..., serialization_alias="statusCounts")


class ContactStats(BaseModel):
    total: int
    new: int
    monthly: int
    weekly: int
    distribution: Dict[str, int]
    response_rate: int = Field(..., serialization_alias="responseRate")
