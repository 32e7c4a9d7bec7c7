"""
Authentication utilities: password hashing and admin session helpers
"""

from typing import Optional

from passlib.context import CryptContext
from starlette.requests import Request

# Password hashing context
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto"
)

SESSION_USER_KEYS = ("authenticated", "user_id", "username", "role")


def hash_password(password: str) -> str:
    """Hash a password using argon2"""
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash"""
    return pwd_context.verify(password, password_hash)


def start_admin_session(request: Request, user) -> None:
    """Mark the signed session cookie as belonging to an authenticated admin."""
    request.session.update({
        "authenticated": True,
        "user_id": user.id,
        "username": user.username,
        "role": user.role,
    })


def end_admin_session(request: Request) -> None:
    for key in SESSION_USER_KEYS:
        request.session.pop(key, None)


def get_session_user(request: Request) -> Optional[dict]:
    """Admin identity stored in the session, or None when not logged in."""
    if not request.session.get("authenticated"):
        return None
    return {
        "id": request.session.get("user_id"),
        "username": request.session.get("username"),
        "role": request.session.get("role"),
    }
