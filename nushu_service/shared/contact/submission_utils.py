"""Contact submission intake and moderation.

Route handlers stay thin; everything that touches the session lives here so
it can be exercised without HTTP.
"""

import math
import uuid
import logging
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from nushu_service.shared.contact.database import ContactSubmission, CONTACT_STATUSES
from nushu_service.shared.contact.notifications import NotificationDispatcher
from nushu_service.shared.contact.schemas import (
    ContactRequest,
    ContactStatus,
    ContactSubmissionOut,
    ContactListData,
    ContactStats,
    Pagination,
    StatusCounts,
)
from nushu_service.shared.errors import InternalError, NotFound, RateLimitExceeded, ValidationError
from nushu_service.shared.rate_limit import FixedWindowRateLimiter

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


def _commit(db: Session, action: str) -> None:
    """Commit the session, turning persistence failures into InternalError."""
    try:
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logging.error(f"Failed to {action}: {str(e)}", exc_info=True)
        raise InternalError(f"Failed to {action}", error=str(e))


def parse_submission_id(raw_id: str) -> str:
    """Return the canonical form of a submission id or raise ValidationError."""
    try:
        return str(uuid.UUID(raw_id))
    except (ValueError, AttributeError, TypeError):
        raise ValidationError("Invalid contact ID")


def create_submission(
    db: Session,
    data: ContactRequest,
    ip_address: Optional[str] = None,
    user_agent: Optional[str] = None
) -> ContactSubmission:
    """Persist a new submission with status ``new``."""
    submission = ContactSubmission(
        name=data.name,
        email=data.email,
        message=data.message,
        interested_event=data.interested_event or "",
        status=ContactStatus.NEW.value,
        ip_address=ip_address,
        user_agent=user_agent,
    )
    db.add(submission)
    _commit(db, "submit contact form")
    db.refresh(submission)
    logging.info(f"Contact submission {submission.id} saved")
    return submission


def submit_contact(
    db: Session,
    data: ContactRequest,
    client_ip: str,
    user_agent: Optional[str],
    limiter: FixedWindowRateLimiter,
    dispatcher: NotificationDispatcher
) -> ContactSubmission:
    """
    Accept a validated submission.

    ``data`` has already passed schema validation, so malformed requests
    never consume rate-limit budget. The record is committed before the
    notification is attempted, and the notification outcome never affects
    the result.
    """
    if not limiter.try_consume(client_ip):
        logging.warning(f"Contact rate limit exceeded for {client_ip}")
        raise RateLimitExceeded(
            "Too many contact submissions. Please try again later.",
            retry_after=limiter.retry_after(client_ip)
        )

    submission = create_submission(
        db,
        data,
        ip_address=None if client_ip == "unknown" else client_ip,
        user_agent=user_agent,
    )
    dispatcher.send(submission)
    return submission


def get_submission(db: Session, submission_id: str) -> ContactSubmission:
    """Load a submission without side effects."""
    submission_id = parse_submission_id(submission_id)
    try:
        submission = db.query(ContactSubmission).filter(ContactSubmission.id == submission_id).first()
    except SQLAlchemyError as e:
        logging.error(f"Failed to fetch contact {submission_id}: {str(e)}", exc_info=True)
        raise InternalError("Failed to fetch contact", error=str(e))
    if submission is None:
        raise NotFound("Contact not found")
    return submission


def fetch_and_mark_read(db: Session, submission_id: str) -> ContactSubmission:
    """Load a submission for an admin, advancing ``new`` to ``read``."""
    submission = get_submission(db, submission_id)
    if submission.status == ContactStatus.NEW.value:
        submission.status = ContactStatus.READ.value
        submission.updated_at = datetime.utcnow()
        _commit(db, "update contact")
        db.refresh(submission)
    return submission


def update_status(
    db: Session,
    submission_id: str,
    status: ContactStatus,
    response: Optional[str] = None
) -> ContactSubmission:
    """
    Relabel a submission. Any status may move to any other.

    A non-empty response stored together with ``responded`` sets
    ``responded_at`` the first time. ``responded`` without a response is
    accepted and leaves ``responded_at`` unset. Existing response history
    is never cleared.
    """
    submission = get_submission(db, submission_id)
    now = datetime.utcnow()

    submission.status = status.value
    if status == ContactStatus.RESPONDED and response:
        submission.response = response
        if submission.responded_at is None:
            submission.responded_at = now
    submission.updated_at = now

    _commit(db, "update contact")
    db.refresh(submission)
    logging.info(f"Contact {submission.id} moved to {submission.status}")
    return submission


def delete_submission(db: Session, submission_id: str) -> None:
    """Hard delete a submission."""
    submission = get_submission(db, submission_id)
    db.delete(submission)
    _commit(db, "delete contact")
    logging.info(f"Contact {submission_id} deleted")


def _count_by_status(db: Session) -> dict:
    rows = db.query(ContactSubmission.status, func.count(ContactSubmission.id)).group_by(
        ContactSubmission.status
    ).all()
    return {status: count for status, count in rows}


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def list_submissions(
    db: Session,
    status: Optional[str] = None,
    search: Optional[str] = None,
    page: Optional[int] = None,
    limit: Optional[int] = None
) -> ContactListData:
    """
    Page through submissions, newest first.

    ``status`` values outside the four labels (including ``all``) apply no
    filter. ``page`` and ``limit`` are clamped rather than rejected.
    """
    page_number = max(1, page or 1)
    page_size = min(MAX_PAGE_SIZE, max(1, DEFAULT_PAGE_SIZE if limit is None else limit))

    try:
        query = db.query(ContactSubmission)
        if status in CONTACT_STATUSES:
            query = query.filter(ContactSubmission.status == status)
        if search and search.strip():
            pattern = f"%{_escape_like(search.strip())}%"
            query = query.filter(or_(
                ContactSubmission.name.ilike(pattern, escape="\\"),
                ContactSubmission.email.ilike(pattern, escape="\\"),
                ContactSubmission.message.ilike(pattern, escape="\\"),
            ))

        total = query.count()
        contacts = query.order_by(ContactSubmission.created_at.desc()).offset(
            (page_number - 1) * page_size
        ).limit(page_size).all()
        counts = _count_by_status(db)
    except SQLAlchemyError as e:
        logging.error(f"Failed to fetch contacts: {str(e)}", exc_info=True)
        raise InternalError("Failed to fetch contacts", error=str(e))

    return ContactListData(
        contacts=[ContactSubmissionOut.model_validate(c) for c in contacts],
        pagination=Pagination(
            page=page_number,
            limit=page_size,
            total=total,
            pages=math.ceil(total / page_size),
        ),
        status_counts=StatusCounts(
            new=counts.get("new", 0),
            read=counts.get("read", 0),
            responded=counts.get("responded", 0),
            archived=counts.get("archived", 0),
            total=total,
        ),
    )


def submission_stats(db: Session, now: Optional[datetime] = None) -> ContactStats:
    """Totals, recent volume and response rate across all submissions."""
    now = now or datetime.utcnow()
    try:
        total = db.query(func.count(ContactSubmission.id)).scalar() or 0
        monthly = db.query(func.count(ContactSubmission.id)).filter(
            ContactSubmission.created_at >= now - timedelta(days=30)
        ).scalar() or 0
        weekly = db.query(func.count(ContactSubmission.id)).filter(
            ContactSubmission.created_at >= now - timedelta(days=7)
        ).scalar() or 0
        distribution = _count_by_status(db)
    except SQLAlchemyError as e:
        logging.error(f"Failed to fetch contact statistics: {str(e)}", exc_info=True)
        raise InternalError("Failed to fetch contact statistics", error=str(e))

    responded = distribution.get("responded", 0)
    return ContactStats(
        total=total,
        new=distribution.get("new", 0),
        monthly=monthly,
        weekly=weekly,
        distribution=distribution,
        response_rate=round(responded / total * 100) if total else 0,
    )
