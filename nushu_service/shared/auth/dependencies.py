"""Authentication dependencies for protected routes."""

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from nushu_service.shared.auth.auth import verify_token
from nushu_service.shared.auth.schemas import AdminIdentity
from nushu_service.shared.errors import Unauthorized

# auto_error=False so a missing header reaches verify_admin and gets our 401 body
security = HTTPBearer(auto_error=False)


def verify_admin(
    credentials: HTTPAuthorizationCredentials = Depends(security)
) -> AdminIdentity:
    """
    Require a bearer token signed with SECRET_KEY.

    There is a single admin account, so any valid access token grants full
    admin access.
    """
    if credentials is None:
        raise Unauthorized("Access token is required")

    payload = verify_token(credentials.credentials, token_type="access")
    if payload is None:
        raise Unauthorized("Invalid or expired token")

    username = payload.get("sub")
    if not username:
        raise Unauthorized("Invalid token payload")

    return AdminIdentity(username=username, role=payload.get("role", "admin"))
