from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Any, Dict

from coursedesk.core.database import get_session
from coursedesk.core.dependencies import require_admin
from coursedesk.core.limits import limiter
from coursedesk.core.security import jwt_manager, ROLE_ADMIN, ROLE_WEBSITE
from coursedesk.auth.crud.users import authenticate, change_password
from coursedesk.auth.schemas.auth import (
    LoginRequest,
    LoginResponse,
    ChangePasswordRequest,
    ChangePasswordResponse,
)

# Website access gate
router = APIRouter(prefix="/auth", tags=["Authentication"])

# Back office
admin_router = APIRouter(prefix="/admin", tags=["Authentication"])


async def _login(session: AsyncSession, account: str, password: str, message: str) -> LoginResponse:
    user = await authenticate(session, account, password)
    token = jwt_manager.create_access_token(user.username, role=account)
    return LoginResponse(
        message=message,
        access_token=token,
        role=account,
        expires_in=jwt_manager.access_token_expire_minutes * 60,
    )


@router.post("/login", response_model=LoginResponse)
@limiter.limit("10/minute")
async def website_login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_session),
):
    """
    Unlock the website with the shared site password.

    Returns a token with the **website** role: enough to browse courses
    and submit inquiries.
    """
    return await _login(db, ROLE_WEBSITE, credentials.password, "Login successful")


@router.post("/change-password", response_model=ChangePasswordResponse)
@limiter.limit("5/minute")
async def change_website_password(
    request: Request,
    payload: ChangePasswordRequest,
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Change the shared website password. Admin only.

    - **current_password**: The website password in use
    - **new_password**: At least 6 characters (MIN_PASSWORD_LENGTH)
    """
    await change_password(db, ROLE_WEBSITE, payload.current_password, payload.new_password)
    return ChangePasswordResponse(message="Website password changed successfully")


@admin_router.post("/login", response_model=LoginResponse)
@limiter.limit("10/minute")
async def admin_login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_session),
):
    """
    Back office login. Returns a token with the **admin** role.
    """
    return await _login(db, ROLE_ADMIN, credentials.password, "Admin login successful")


@admin_router.post("/change-password", response_model=ChangePasswordResponse)
@limiter.limit("5/minute")
async def change_admin_password(
    request: Request,
    payload: ChangePasswordRequest,
    current_user: Dict[str, Any] = Depends(require_admin),
    db: AsyncSession = Depends(get_session),
):
    """
    Change the admin password.

    - **current_password**: The admin password in use
    - **new_password**: At least 6 characters (MIN_PASSWORD_LENGTH)
    """
    await change_password(db, ROLE_ADMIN, payload.current_password, payload.new_password)
    return ChangePasswordResponse(message="Admin password changed successfully")
