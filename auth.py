"""
Admin authentication routes and dependencies
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from auth_utils import end_admin_session, get_session_user, start_admin_session, verify_password
from crud.admin_user import AdminUserRepository
from database import get_db
from models.auth import LoginRequest
from utils.responses import error_response
from utils.validation import parse_body

logger = logging.getLogger(__name__)

# Create auth router
auth_router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


async def require_admin(request: Request) -> dict:
    """Dependency guarding admin-only endpoints."""
    user = get_session_user(request)
    if user is None:
        raise HTTPException(status_code=401, detail="Authentication required")
    return user


@auth_router.post("/login")
async def login(request: Request, db: AsyncSession = Depends(get_db)):
    """Validate admin credentials and start a session"""
    credentials = await parse_body(LoginRequest, request, "Invalid login payload")

    user = await AdminUserRepository(db).get_by_username(credentials.username)
    if user is None or not verify_password(credentials.password, user.hashed_password):
        logger.warning("Failed admin login for %s", credentials.username)
        return error_response("Invalid username or password", status=401)

    start_admin_session(request, user)
    logger.info("Admin %s logged in", user.username)
    return {
        "success": True,
        "message": "Login successful",
        "user": {"id": user.id, "username": user.username, "role": user.role},
    }


@auth_router.post("/logout")
async def logout(request: Request):
    end_admin_session(request)
    return {"success": True, "message": "Logout successful"}


@auth_router.get("/check")
async def check(request: Request):
    user = get_session_user(request)
    if user is None:
        return {"authenticated": False}
    return {"authenticated": True, "user": user}
