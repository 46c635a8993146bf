"""Auth Routers Package"""
from .auth import router as auth_router, admin_router

__all__ = ["auth_router", "admin_router"]
