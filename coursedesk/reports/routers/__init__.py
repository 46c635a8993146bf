"""Reports Routers Package"""
from .stats import router as stats_router
from .exports import router as exports_router
from .reminders import router as reminders_router

__all__ = [
    "stats_router",
    "exports_router",
    "reminders_router",
]
