"""Authentication utilities: admin credential checks and JWT token generation."""

import bcrypt
import hmac
import logging
import os
from jose import JWTError, jwt
from datetime import datetime, timedelta

# JWT settings
SECRET_KEY = os.environ.get("SECRET_KEY")
if not SECRET_KEY:
    logging.warning(
        "SECRET_KEY environment variable is not set. "
        "JWT token operations will fail. "
        "Please set SECRET_KEY to a secure random string."
    )
ALGORITHM = "HS256"
# Admin sessions last a working day
ACCESS_TOKEN_EXPIRE_HOURS = int(os.environ.get("ACCESS_TOKEN_EXPIRE_HOURS", "24"))
ADMIN_ROLE = "admin"


def _password_bytes(password: str) -> bytes:
    # Bcrypt has a 72-byte limit, so we truncate if necessary
    password_bytes = password.encode('utf-8')
    if len(password_bytes) > 72:
        truncated = password_bytes[:72]
        # Remove any incomplete trailing bytes
        while truncated and truncated[-1] & 0x80 and not (truncated[-1] & 0x40):
            truncated = truncated[:-1]
        password_bytes = truncated
    return password_bytes


def hash_password(password: str) -> str:
    """Hash a password using bcrypt."""
    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(_password_bytes(password), salt)
    return hashed.decode('utf-8')


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    try:
        return bcrypt.checkpw(_password_bytes(plain_password), hashed_password.encode('utf-8'))
    except ValueError:
        logging.error("ADMIN_PASSWORD_HASH is not a valid bcrypt hash")
        return False


def verify_admin_credentials(username: str, password: str) -> bool:
    """
    Check a username/password pair against the configured admin account.

    The account comes from ADMIN_USERNAME and ADMIN_PASSWORD_HASH. When no
    hash is configured, ADMIN_PASSWORD is compared in plain text; that is
    meant for local development only.
    """
    admin_username = os.environ.get("ADMIN_USERNAME", "admin")
    if not hmac.compare_digest(username.encode('utf-8'), admin_username.encode('utf-8')):
        return False

    password_hash = os.environ.get("ADMIN_PASSWORD_HASH")
    if password_hash:
        return verify_password(password, password_hash)

    admin_password = os.environ.get("ADMIN_PASSWORD")
    if not admin_password:
        logging.error("Neither ADMIN_PASSWORD_HASH nor ADMIN_PASSWORD is configured")
        return False
    logging.warning("ADMIN_PASSWORD_HASH is not set, using plain ADMIN_PASSWORD comparison")
    return hmac.compare_digest(password.encode('utf-8'), admin_password.encode('utf-8'))


def create_access_token(data: dict, expires_delta: timedelta = None) -> str:
    """Create a JWT access token."""
    if not SECRET_KEY:
        raise ValueError(
            "SECRET_KEY environment variable is required for token creation. "
            "Please set it to a secure random string (e.g., generate with: python -c 'import secrets; print(secrets.token_urlsafe(32))')"
        )
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(hours=ACCESS_TOKEN_EXPIRE_HOURS)
    to_encode.update({"exp": expire, "type": "access"})
    encoded_jwt = jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)
    return encoded_jwt


def verify_token(token: str, token_type: str = None) -> dict:
    """
    Verify and decode a JWT token.

    Args:
        token: JWT token string
        token_type: Optional token type to verify ("access")

    Returns:
        Decoded token payload or None if invalid
    """
    if not SECRET_KEY:
        logging.error("SECRET_KEY is not set. Cannot verify token.")
        return None
    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        if token_type and payload.get("type") != token_type:
            return None
        return payload
    except JWTError:
        return None
