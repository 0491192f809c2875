"""Contact routes: public form intake and admin moderation."""

import os
from typing import Optional
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from nushu_service.shared.auth.dependencies import verify_admin
from nushu_service.shared.auth.schemas import AdminIdentity
from nushu_service.shared.contact.notifications import NotificationDispatcher, get_notification_dispatcher
from nushu_service.shared.contact.schemas import (
    ContactRequest,
    ContactSubmitResponse,
    ContactSubmissionOut,
    ContactUpdateRequest,
    SubmissionReceipt,
)
from nushu_service.shared.contact import submission_utils
from nushu_service.shared.database import get_db
from nushu_service.shared.rate_limit import FixedWindowRateLimiter, get_client_ip

router = APIRouter(prefix="/api/contacts", tags=["contacts"])

# Rate limiting configuration
RATE_LIMIT_MAX_REQUESTS = int(os.environ.get("CONTACT_RATE_LIMIT_MAX", "3"))  # Max 3 messages per hour
RATE_LIMIT_WINDOW_SECONDS = float(os.environ.get("CONTACT_RATE_LIMIT_WINDOW_SECONDS", "3600"))
MAX_USER_AGENT_LENGTH = 500

_contact_rate_limiter = FixedWindowRateLimiter(RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_SECONDS)


def get_contact_rate_limiter() -> FixedWindowRateLimiter:
    """Dependency returning the process-wide contact form limiter."""
    return _contact_rate_limiter


@router.post("", response_model=ContactSubmitResponse, status_code=status.HTTP_201_CREATED)
@router.post("/submit", response_model=ContactSubmitResponse, status_code=status.HTTP_201_CREATED)
def submit_contact_form(
    contact_data: ContactRequest,
    request: Request,
    db: Session = Depends(get_db),
    limiter: FixedWindowRateLimiter = Depends(get_contact_rate_limiter),
    dispatcher: NotificationDispatcher = Depends(get_notification_dispatcher)
):
    """
    Submit a contact form message.

    Both paths share this handler so validation always precedes the rate
    limit check: a malformed request is rejected with 400 before it can use
    up any of the sender's 3 messages per hour.

    Declared with plain ``def`` so FastAPI runs it in the threadpool: the
    database calls and the SMTP delivery block.
    """
    user_agent = request.headers.get("User-Agent")
    submission = submission_utils.submit_contact(
        db,
        contact_data,
        client_ip=get_client_ip(request),
        user_agent=user_agent[:MAX_USER_AGENT_LENGTH] if user_agent else None,
        limiter=limiter,
        dispatcher=dispatcher,
    )
    return ContactSubmitResponse(
        message="Thank you for your message. We will get back to you soon.",
        data=SubmissionReceipt(id=submission.id, timestamp=submission.created_at),
    )


@router.get("")
def list_contacts(
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None,
    admin: AdminIdentity = Depends(verify_admin),
    db: Session = Depends(get_db)
):
    """List submissions with optional status filter and text search."""
    data = submission_utils.list_submissions(db, status=status, search=search, page=page, limit=limit)
    return {"success": True, "data": data.model_dump(by_alias=True, mode="json")}


@router.get("/stats")
def get_contact_stats(
    admin: AdminIdentity = Depends(verify_admin),
    db: Session = Depends(get_db)
):
    """Submission volume and response rate."""
    stats = submission_utils.submission_stats(db)
    return {"success": True, "data": stats.model_dump(by_alias=True, mode="json")}


@router.get("/{contact_id}")
def get_contact(
    contact_id: str,
    admin: AdminIdentity = Depends(verify_admin),
    db: Session = Depends(get_db)
):
    """Get one submission. Opening a ``new`` submission marks it ``read``."""
    submission = submission_utils.fetch_and_mark_read(db, contact_id)
    return {
        "success": True,
        "data": ContactSubmissionOut.model_validate(submission).model_dump(by_alias=True, mode="json"),
    }


@router.put("/{contact_id}")
def update_contact(
    contact_id: str,
    update: ContactUpdateRequest,
    admin: AdminIdentity = Depends(verify_admin),
    db: Session = Depends(get_db)
):
    """Change a submission's status, optionally attaching a response."""
    submission = submission_utils.update_status(db, contact_id, update.status, update.response)
    return {
        "success": True,
        "message": "Contact updated successfully",
        "data": ContactSubmissionOut.model_validate(submission).model_dump(by_alias=True, mode="json"),
    }


@router.delete("/{contact_id}")
def delete_contact(
    contact_id: str,
    admin: AdminIdentity = Depends(verify_admin),
    db: Session = Depends(get_db)
):
    """Permanently remove a submission."""
    submission_utils.delete_submission(db, contact_id)
    return {"success": True, "message": "Contact deleted successfully"}
