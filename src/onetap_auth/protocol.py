"""
Protocols for the collaborators driven by the sign-in controller.

Implementations (e.g. GoogleIdentityProvider, FirebaseAuthBackend, RedirectHandOff)
are injected into SignInFlowController so tests can substitute fakes.
"""

from dataclasses import dataclass, field
from typing import Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class SignInConfig:
    """Provider options for beginning a sign-in."""

    server_client_id: str
    filter_by_authorized_accounts_only: bool = False


@dataclass(frozen=True)
class LaunchRequest:
    """Everything needed to open the provider's sign-in UI. Opaque to the controller."""

    url: str
    state: str
    client_id: str
    nonce: Optional[str] = None


@dataclass(frozen=True)
class LaunchResult:
    """What the platform hands back once the provider UI returns control."""

    params: dict = field(default_factory=dict)
    cancelled: bool = False

    @classmethod
    def cancel(cls) -> "LaunchResult":
        """Empty result used when the user dismissed the provider UI."""
        return cls(params={}, cancelled=True)


@dataclass(frozen=True)
class ProviderCredential:
    id_token: Optional[str] = None


@dataclass(frozen=True)
class Identity:
    """Application identity resolved by the auth backend."""

    user_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    photo_url: Optional[str] = None


@runtime_checkable
class IdentityProviderClient(Protocol):
    """Protocol for a one-tap identity provider (e.g. Google)."""

    async def begin_sign_in(self, config: SignInConfig) -> LaunchRequest:
        """Prepare the provider UI launch. Raises ProviderUnavailable."""
        ...

    async def complete_sign_in(self, request: LaunchRequest, result: LaunchResult) -> ProviderCredential:
        """Extract the provider ID token from the hand-off result. Raises ProviderError."""
        ...


@runtime_checkable
class AuthBackend(Protocol):
    """Protocol for the backend that turns a provider ID token into an identity."""

    async def exchange_credential(self, provider_id_token: str) -> Optional[Identity]:
        """Return the resolved identity, or None. Raises BackendRejected / BackendOther."""
        ...


@runtime_checkable
class HandOff(Protocol):
    """Transfers control to the provider UI and waits for it to come back."""

    async def launch(self, request: LaunchRequest) -> LaunchResult:
        ...
