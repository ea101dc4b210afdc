"""Authentication schemas for API requests and responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class LoginRequest(BaseModel):
    password: str | None = None

    @classmethod
    def from_body(cls, body: Any) -> "LoginRequest":
        """Read the password from any JSON body; anything unusable counts as missing."""
        if isinstance(body, dict) and isinstance(body.get("password"), str):
            return cls(password=body["password"])
        return cls()


class LoginResponse(BaseModel):
    success: bool
    message: str


class AuthStatusResponse(BaseModel):
    authenticated: bool
    locked: bool


class LockStatusResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    locked: bool
    failed_attempts: int


class LogoutResponse(BaseModel):
    success: bool
