"""
FastAPI dependencies shared by the v1 routers.
"""

from .auth import get_current_profile, require_user_type
from .database import get_db
from .pagination import Pagination, get_pagination

__all__ = [
    "Pagination",
    "get_current_profile",
    "get_db",
    "get_pagination",
    "require_user_type",
]
