"""
Auth Models.

Signed-in session data and the outcome of a sign-in attempt.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from notetogether.core.utils import utc_now


class AuthSession(BaseModel):
    """A signed-in user, as returned by the identity provider."""

    user_id: str = Field(description="Provider user id; scopes the note collection")
    email: str | None = Field(default=None, description="Account email, if any")
    id_token: str = Field(repr=False, description="Short-lived ID token")
    refresh_token: str = Field(default="", repr=False, description="Long-lived refresh token")
    expires_at: datetime = Field(description="Naive UTC expiry of id_token")

    @property
    def is_expired(self) -> bool:
        return utc_now() >= self.expires_at


class AuthResult(BaseModel):
    """Success or failure of one sign-in / sign-up call."""

    success: bool
    session: AuthSession | None = None
    error: str | None = Field(default=None, description="Provider error text on failure")

    @classmethod
    def ok(cls, session: AuthSession) -> "AuthResult":
        return cls(success=True, session=session)

    @classmethod
    def failed(cls, error: str) -> "AuthResult":
        return cls(success=False, error=error)
