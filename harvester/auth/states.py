"""Login state machine states.

One restore-or-login cycle walks these states until it lands on a terminal
one:

    NoSession -> RestoringFromCredential -> Authenticated
                                         -> CredentialExpired -> PerformingFreshLogin
    NoSession -> PerformingFreshLogin -> Authenticated | AwaitingTwoFactor | Unknown
    AwaitingTwoFactor -> Authenticated | TwoFactorPending

Any state lacking the credentials it needs goes to Failed.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from harvester.models.cookies import SessionCredential
from harvester.models.session import SessionStatus


@dataclass(frozen=True)
class NoSession:
    pass


@dataclass(frozen=True)
class RestoringFromCredential:
    credential: SessionCredential


@dataclass(frozen=True)
class CredentialExpired:
    reason: str


@dataclass(frozen=True)
class PerformingFreshLogin:
    pass


@dataclass(frozen=True)
class AwaitingTwoFactor:
    url: str


# Terminal states


@dataclass(frozen=True)
class Authenticated:
    url: str
    message: str
    used_cookies: bool = False


@dataclass(frozen=True)
class TwoFactorPending:
    url: str
    message: str


@dataclass(frozen=True)
class Unknown:
    url: str
    message: str


@dataclass(frozen=True)
class Failed:
    message: str


LoginState = Union[
    NoSession,
    RestoringFromCredential,
    CredentialExpired,
    PerformingFreshLogin,
    AwaitingTwoFactor,
    Authenticated,
    TwoFactorPending,
    Unknown,
    Failed,
]

TerminalState = Union[Authenticated, TwoFactorPending, Unknown, Failed]

TERMINAL_STATES = (Authenticated, TwoFactorPending, Unknown, Failed)

TERMINAL_STATUS: dict[type, SessionStatus] = {
    Authenticated: SessionStatus.AUTHENTICATED,
    TwoFactorPending: SessionStatus.TWO_FACTOR_PENDING,
    Unknown: SessionStatus.UNKNOWN,
    Failed: SessionStatus.FAILED,
}
