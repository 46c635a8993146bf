from typing import Any, Dict, List, Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from coursedesk.core.exceptions import AuthenticationError, AuthorizationError
from coursedesk.core.security import jwt_manager, ROLE_ADMIN, ROLE_WEBSITE

security = HTTPBearer(
    scheme_name="Access token",
    description="Token returned by /api/admin/login or /api/auth/login",
    auto_error=False,
)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Dict[str, Any]:
    """Decoded token payload of the caller"""
    if credentials is None or not credentials.credentials.strip():
        raise AuthenticationError("Authentication token is required")

    return jwt_manager.decode_token(credentials.credentials)


def require_roles(allowed_roles: List[str]):
    """
    Dependency factory restricting a route to the given roles.

    Usage:
    @router.get("/admin-only")
    async def admin_route(user: Dict = Depends(require_roles(["admin"]))):
        ...
    """

    async def role_dependency(
        user: Dict[str, Any] = Depends(get_current_user),
    ) -> Dict[str, Any]:
        user_role = user.get("role")
        if user_role not in allowed_roles:
            raise AuthorizationError(
                f"Access denied. Required roles: {allowed_roles}",
                {"role": user_role},
            )
        return user

    return role_dependency


require_admin = require_roles([ROLE_ADMIN])
require_site_access = require_roles([ROLE_ADMIN, ROLE_WEBSITE])
