"""API routers."""

from .plugins import router as plugins_router
from .project import router as project_router

__all__ = ["plugins_router", "project_router"]
