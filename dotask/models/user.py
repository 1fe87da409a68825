"""User, session and profile models."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, field_validator

from dotask.models.task import parse_timestamp


class User(BaseModel):
    """The authenticated user as reported by the server."""

    id: str
    name: str = ""
    email: str = ""
    created_at: datetime | None = None
    updated_at: datetime | None = None


class AuthPayload(BaseModel):
    """login / register response: the user plus a bearer token."""

    user: User
    token: str = ""


def user_from_wire(payload: Any) -> User:
    if not isinstance(payload, dict):
        payload = {}
    return User(
        id=str(payload.get("id") or ""),
        name=str(payload.get("name") or ""),
        email=str(payload.get("email") or ""),
        created_at=parse_timestamp(payload.get("createdAt")),
        updated_at=parse_timestamp(payload.get("updatedAt")),
    )


def auth_payload_from_wire(payload: Any) -> AuthPayload:
    if not isinstance(payload, dict):
        payload = {}
    return AuthPayload(
        user=user_from_wire(payload.get("user")),
        token=str(payload.get("token") or ""),
    )


# === Inputs ===


def _check_email(v: str) -> str:
    v = v.strip()
    local, _, domain = v.partition("@")
    if not local or "." not in domain or domain.startswith(".") or domain.endswith("."):
        raise ValueError("invalid email address")
    return v


class LoginInput(BaseModel):
    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _check_email(v)


class RegisterInput(BaseModel):
    name: str = Field(min_length=1)
    email: str
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _check_email(v)


class UpdateProfileInput(BaseModel):
    """Profile changes; unset fields are not sent."""

    name: str | None = Field(default=None, min_length=1)
    email: str | None = None

    @field_validator("email")
    @classmethod
    def _email(cls, v: str | None) -> str | None:
        return _check_email(v) if v is not None else None

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ChangePasswordInput(BaseModel):
    current_password: str = Field(min_length=1)
    new_password: str = Field(min_length=1)

    def to_wire(self) -> dict[str, Any]:
        return {
            "currentPassword": self.current_password,
            "newPassword": self.new_password,
        }
