"""Database models for contact form submissions."""

from sqlalchemy import Column, String, DateTime, Text, Index
from datetime import datetime
import uuid

from nushu_service.shared.database import Base

CONTACT_STATUSES = ("new", "read", "responded", "archived")


class ContactSubmission(Base):
    """One contact form message plus its moderation metadata."""
    __tablename__ = "contact_submissions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    interested_event = Column(String, nullable=False, default="")
    status = Column(String(20), nullable=False, default="new")  # new, read, responded, archived
    # Provenance captured from the request, never from the form body
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    response = Column(Text, nullable=True)
    responded_at = Column(DateTime, nullable=True)  # Set once, when a response is first attached
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('idx_contact_submissions_status_created', 'status', 'created_at'),
        Index('idx_contact_submissions_email', 'email'),
    )
