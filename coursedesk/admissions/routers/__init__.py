"""Admissions Routers Package"""
from .inquiries import router as inquiries_router
from .enrollments import router as enrollments_router

__all__ = [
    "inquiries_router",
    "enrollments_router",
]
