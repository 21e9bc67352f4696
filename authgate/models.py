from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

EMAIL_DOMAIN = "app.com"


def derive_email(username: str) -> str:
    return f"{username.lower()}@{EMAIL_DOMAIN}"


class UserRecord(BaseModel):
    """A registered local user.

    Passwords are compared as stored; there is no hashing here.
    """

    model_config = ConfigDict(frozen=True)

    username: str = Field(min_length=1)
    password: str = Field(min_length=1)
    email: str

    @model_validator(mode="after")
    def _email_matches_username(self) -> "UserRecord":
        if self.email != derive_email(self.username):
            raise ValueError("email must be derived from username")
        return self

    @classmethod
    def for_registration(cls, *, username: str, password: str) -> "UserRecord":
        return cls(username=username, password=password, email=derive_email(username))


class Page(str, Enum):
    splash = "splash"
    login = "login"
    register = "register"
    privacy = "privacy"


class FailureReason(str, Enum):
    # Validation
    missing_fields = "missing_fields"
    password_too_short = "password_too_short"
    username_taken = "username_taken"
    invalid_credentials = "invalid_credentials"
    # Storage
    storage_error = "storage_error"
    # External login handshake
    browser_unavailable = "browser_unavailable"
    user_cancelled = "user_cancelled"
    user_dismissed = "user_dismissed"
    security_violation = "security_violation"
    missing_token = "missing_token"
    unexpected_result = "unexpected_result"
    # Re-entrant call while an attempt is in flight
    busy = "busy"


FAILURE_MESSAGES: dict[FailureReason, str] = {
    FailureReason.missing_fields: "Please fill in all fields.",
    FailureReason.password_too_short: "Password must be at least 6 characters.",
    FailureReason.username_taken: "That username is already taken.",
    FailureReason.invalid_credentials: "Invalid email or password.",
    FailureReason.storage_error: "Could not save your account. Please try again.",
    FailureReason.browser_unavailable: "Could not open the sign-in page.",
    FailureReason.user_cancelled: "Sign-in was cancelled.",
    FailureReason.user_dismissed: "Sign-in window was closed.",
    FailureReason.security_violation: "Sign-in failed a security check (possible forged callback).",
    FailureReason.missing_token: "Sign-in did not return a credential.",
    FailureReason.unexpected_result: "Sign-in returned an unexpected result.",
    FailureReason.busy: "Please wait for the current sign-in to finish.",
}


@dataclass(frozen=True)
class AuthFailure:
    reason: FailureReason
    message: str
    detail: Optional[str] = None

    @classmethod
    def of(cls, reason: FailureReason, detail: Optional[str] = None) -> "AuthFailure":
        return cls(reason=reason, message=FAILURE_MESSAGES[reason], detail=detail)


@dataclass(frozen=True)
class LoginSuccess:
    method: Literal["local", "provider"]
    email: Optional[str] = None
    username: Optional[str] = None
    token: Optional[str] = None


@dataclass(frozen=True)
class Registered:
    email: str


@dataclass(frozen=True)
class HandshakeSuccess:
    token: str


LoginResult = Union[LoginSuccess, AuthFailure]
RegisterResult = Union[Registered, AuthFailure]
HandshakeResult = Union[HandshakeSuccess, AuthFailure]
