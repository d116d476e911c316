"""
Domain-specific exception hierarchy for Postboard.

All custom exceptions inherit from PostboardException so the web layer can
render them with a single handler.
"""

from typing import Any


class PostboardException(Exception):
    """
    Base exception for all Postboard errors.

    Attributes:
        message: Human-readable error message, safe to show to the user
        status_code: HTTP status used when the error reaches the web layer
        context: Additional context for debugging (logged, never rendered)
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        context: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.context:
            context_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{self.message} ({context_str})"
        return self.message


# ============================================================================
# Startup Exceptions
# ============================================================================

class DependencyUnavailable(PostboardException):
    """A backing service did not accept connections before the timeout."""

    def __init__(self, name: str, host: str, port: int, timeout: float):
        super().__init__(
            f"{name} unavailable at {host}:{port} after {timeout:g}s",
            status_code=503,
            context={"service": name, "host": host, "port": port},
        )
        self.name = name
        self.host = host
        self.port = port
        self.timeout = timeout


# ============================================================================
# Authentication Exceptions
# ============================================================================

class DuplicateAccount(PostboardException):
    """Account name already registered."""

    def __init__(self, name: str):
        super().__init__(
            f"An account named '{name}' already exists",
            status_code=409,
            context={"account_name": name},
        )
        self.name = name


class AuthenticationFailed(PostboardException):
    """Unknown account or wrong password. The message never says which."""

    MESSAGE = "Invalid name or password"

    def __init__(self):
        super().__init__(self.MESSAGE, status_code=401)


# ============================================================================
# Backing Service Exceptions
# ============================================================================

class UploadFailed(PostboardException):
    """Object store rejected or failed an upload."""

    def __init__(self, reason: str, bucket: str | None = None, key: str | None = None):
        context = {"reason": reason}
        if bucket:
            context["bucket"] = bucket
        if key:
            context["key"] = key
        super().__init__("File upload failed", status_code=502, context=context)
        self.reason = reason


class DatabaseError(PostboardException):
    """A database statement failed."""

    def __init__(self, reason: str):
        super().__init__(
            "Database error", status_code=500, context={"reason": reason}
        )
        self.reason = reason


class SessionStoreError(PostboardException):
    """The session cache failed a read or write."""

    def __init__(self, reason: str):
        super().__init__(
            "Session store unavailable", status_code=503, context={"reason": reason}
        )
        self.reason = reason


# ============================================================================
# Control Flow
# ============================================================================

class RedirectRequired(Exception):
    """Raised by route guards to short-circuit a request with a redirect."""

    def __init__(self, location: str):
        self.location = location
        super().__init__(location)
