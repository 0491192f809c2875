"""Admin routes: login, token check and dashboard summary."""

import os
import logging
from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from nushu_service.shared.auth import auth
from nushu_service.shared.auth.dependencies import verify_admin
from nushu_service.shared.auth.schemas import (
    AdminIdentity,
    LoginData,
    LoginRequest,
    LoginResponse,
    VerifyResponse,
)
from nushu_service.shared.contact.database import ContactSubmission
from nushu_service.shared.database import get_db
from nushu_service.shared.errors import InternalError, RateLimitExceeded, Unauthorized, ValidationError
from nushu_service.shared.rate_limit import FixedWindowRateLimiter, get_client_ip

router = APIRouter(prefix="/api/admin", tags=["admin"])

# Failed login attempts allowed per address before a lockout
LOGIN_RATE_LIMIT_MAX = int(os.environ.get("LOGIN_RATE_LIMIT_MAX", "5"))
LOGIN_RATE_LIMIT_WINDOW_SECONDS = float(os.environ.get("LOGIN_RATE_LIMIT_WINDOW_SECONDS", "900"))
RECENT_CONTACTS_LIMIT = 5

_login_rate_limiter = FixedWindowRateLimiter(LOGIN_RATE_LIMIT_MAX, LOGIN_RATE_LIMIT_WINDOW_SECONDS)


def get_login_rate_limiter() -> FixedWindowRateLimiter:
    return _login_rate_limiter


@router.post("/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
def login(
    credentials: LoginRequest,
    request: Request,
    limiter: FixedWindowRateLimiter = Depends(get_login_rate_limiter)
):
    """
    Exchange the admin username and password for a bearer token.

    Only failed attempts count against the limit; a successful login clears
    the counter for the caller's address.
    """
    client_ip = get_client_ip(request)
    if limiter.is_blocked(client_ip):
        raise RateLimitExceeded(
            "Too many authentication attempts. Please try again later.",
            retry_after=limiter.retry_after(client_ip)
        )

    username = (credentials.username or "").strip()
    password = credentials.password or ""
    if not username or not password:
        raise ValidationError("Username and password are required")

    if not auth.SECRET_KEY:
        raise InternalError("Admin authentication not configured")

    if not auth.verify_admin_credentials(username, password):
        limiter.try_consume(client_ip)
        logging.warning(f"Failed admin login for '{username}' from {client_ip}")
        raise Unauthorized("Invalid credentials")

    limiter.reset(client_ip)
    token = auth.create_access_token({"sub": username, "role": auth.ADMIN_ROLE})
    logging.info(f"Admin '{username}' logged in from {client_ip}")

    return LoginResponse(
        message="Login successful",
        data=LoginData(token=token, user=AdminIdentity(username=username, role=auth.ADMIN_ROLE)),
    )


@router.get("/verify", response_model=VerifyResponse)
def verify(admin: AdminIdentity = Depends(verify_admin)):
    """Confirm the presented token is still valid."""
    return VerifyResponse(message="Token is valid", data=admin)


@router.get("/dashboard")
def dashboard(
    admin: AdminIdentity = Depends(verify_admin),
    db: Session = Depends(get_db)
):
    """Contact totals and the most recent submissions."""
    total_contacts = db.query(func.count(ContactSubmission.id)).scalar() or 0
    new_contacts = db.query(func.count(ContactSubmission.id)).filter(
        ContactSubmission.status == "new"
    ).scalar() or 0
    recent = db.query(ContactSubmission).order_by(
        ContactSubmission.created_at.desc()
    ).limit(RECENT_CONTACTS_LIMIT).all()

    return {
        "success": True,
        "data": {
            "stats": {
                "totalContacts": total_contacts,
                "newContacts": new_contacts,
            },
            "recentActivity": {
                "contacts": [
                    {
                        "id": c.id,
                        "name": c.name,
                        "email": c.email,
                        "status": c.status,
                        "createdAt": c.created_at.isoformat(),
                    }
                    for c in recent
                ],
            },
        },
    }
