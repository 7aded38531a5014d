"""Authentication Pydantic schemas for API validation."""

from .auth import TokenPayload, TokenResponse, UserLogin, UserResponse

__all__ = [
    "TokenPayload",
    "TokenResponse",
    "UserLogin",
    "UserResponse",
]
