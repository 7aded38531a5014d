"""Pydantic models for the authentication endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class UserLogin(BaseModel):
    """Credentials posted to /auth/login."""

    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(..., min_length=1, max_length=64, pattern=r"^[a-z0-9-]+$")
    password: str = Field(..., min_length=1)


class TokenPayload(BaseModel):
    """JWT claims. sub is the session card id."""

    sub: str
    username: str
    iat: int
    exp: int


class UserResponse(BaseModel):
    """Public view of a user card."""

    id: str
    slug: str
    name: str | None = None
    email: str | None = None
    roles: list[str] = []

    @classmethod
    def from_card(cls, card: dict) -> "UserResponse":
        return cls(
            id=card["id"],
            slug=card["slug"],
            name=card.get("name"),
            email=card["data"].get("email"),
            roles=card["data"].get("roles", []),
        )


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    session: str
    user: UserResponse
