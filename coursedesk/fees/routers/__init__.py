"""Fees Routers Package"""
from .courses import router as courses_router
from .custom_fees import router as custom_fees_router
from .payments import router as payments_router
from .fees import router as fees_router

__all__ = [
    "courses_router",
    "custom_fees_router",
    "payments_router",
    "fees_router",
]
