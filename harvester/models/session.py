"""Login request and outcome models."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, SecretStr, computed_field


class SessionStatus(str, Enum):
    """Terminal states of one restore-or-login cycle."""

    AUTHENTICATED = "authenticated"
    TWO_FACTOR_PENDING = "two_factor_pending"
    UNKNOWN = "unknown"
    FAILED = "failed"


class LoginCredentials(BaseModel):
    """Email/password pair for a fresh login."""

    email: str
    password: SecretStr


class SessionOutcome(BaseModel):
    """Result of ``establish_session``.

    ``success`` is False only for FAILED; TWO_FACTOR_PENDING and UNKNOWN are
    completed calls whose status the caller has to act on.
    """

    status: SessionStatus
    message: str
    url: Optional[str] = None
    used_cookies: bool = False

    @computed_field
    @property
    def success(self) -> bool:
        return self.status is not SessionStatus.FAILED
