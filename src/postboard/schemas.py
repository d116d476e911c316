"""Pydantic schemas for form input."""

from pydantic import BaseModel, Field, field_validator

# bcrypt only reads the first 72 bytes and current releases reject longer input
MAX_PASSWORD_BYTES = 72


class Credentials(BaseModel):
    """Name and password submitted by the login and register forms."""
    name: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValueError(f"Password cannot be longer than {MAX_PASSWORD_BYTES} bytes")
        return value


class HealthResponse(BaseModel):
    """Health check response."""
    status: str = "ok"
