"""Authentication: strategies, the auth service and route guards."""

from .guards import check, check_not, current_account
from .service import AuthService, get_auth_service
from .strategy import AuthStrategy, LocalStrategy

__all__ = [
    "AuthService",
    "AuthStrategy",
    "LocalStrategy",
    "check",
    "check_not",
    "current_account",
    "get_auth_service",
]
