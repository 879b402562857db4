"""
Sign-in state for the one-tap flow.

SignInState is a closed union: exactly one of Idle, Pending, Succeeded or Failed
is current at any time. Values are frozen; the controller replaces the whole
value on every transition.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

# Shown instead of an email address when the backend identity has none.
NO_EMAIL = "No email"


class FailureKind(str, Enum):
    """Category of a failed attempt."""

    PROVIDER_UNAVAILABLE = "provider_unavailable"
    TOKEN_MISSING = "token_missing"
    BACKEND_REJECTED = "backend_rejected"
    BACKEND_OTHER = "backend_other"
    INCONSISTENT_IDENTITY = "inconsistent_identity"
    UNEXPECTED = "unexpected"


@dataclass(frozen=True)
class Idle:
    """No attempt in progress."""


@dataclass(frozen=True)
class Pending:
    """An attempt is in flight (hand-off or credential exchange)."""


@dataclass(frozen=True)
class Succeeded:
    """The backend resolved an identity for the provider token."""

    user_id: str
    email: str = NO_EMAIL
    display_name: Optional[str] = None
    photo_url: Optional[str] = None

    def __post_init__(self):
        if not self.user_id:
            raise ValueError("Succeeded requires a non-empty user_id")
        if self.email is None:
            object.__setattr__(self, "email", NO_EMAIL)


@dataclass(frozen=True)
class Failed:
    """The attempt ended without an identity."""

    message: str
    kind: FailureKind = FailureKind.UNEXPECTED


SignInState = Union[Idle, Pending, Succeeded, Failed]
