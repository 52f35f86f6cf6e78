"""Persisted cookie jar for one logical browsing session."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CookieEntry(BaseModel):
    """One cookie, in the neutral on-disk layout.

    ``expiry`` is a unix timestamp in seconds; ``None`` marks a session cookie.
    """

    model_config = ConfigDict(populate_by_name=True)

    name: str
    value: str
    domain: Optional[str] = None
    path: str = "/"
    expiry: Optional[int] = None
    http_only: bool = Field(default=False, alias="httpOnly")
    secure: bool = False


class SessionCredential(BaseModel):
    """An ordered cookie jar keyed by a logical session name.

    Produced by a successful login (or loaded from a prior run), consumed at
    restore time, deleted when restore fails validation, and overwritten on
    every successful fresh login.
    """

    name: str
    cookies: list[CookieEntry] = Field(default_factory=list)
    saved_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
