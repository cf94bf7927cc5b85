"""Shared API dependencies — single import point for all routers.

Re-exports database session and authentication dependencies so that router
modules can import everything they need from one place::

    from gymapp.api.deps import get_db, get_current_user
"""

from gymapp.auth.dependencies import (
    TokenClaims,
    get_current_user,
    get_token_claims,
    require_admin,
)
from gymapp.database import get_db

__all__ = [
    "get_db",
    "get_current_user",
    "get_token_claims",
    "require_admin",
    "TokenClaims",
]
