"""
One-tap sign-in module for the application.

Exposes the sign-in state machine (SignInFlowController, SignInState), the
collaborator protocols, the Google / Firebase adapters, and the FastAPI auth
router factory (create_auth_router).
"""

from .config import Settings, load_settings
from .controller import SignInFlowController
from .errors import (
    AuthError,
    BackendOther,
    BackendRejected,
    ProviderError,
    ProviderUnavailable,
    SignInError,
)
from .firebase import FirebaseAuthBackend
from .google import GoogleIdentityProvider
from .handoff import RedirectHandOff
from .protocol import (
    AuthBackend,
    HandOff,
    Identity,
    IdentityProviderClient,
    LaunchRequest,
    LaunchResult,
    ProviderCredential,
    SignInConfig,
)
from .router import create_auth_router
from .session import ScreenRegistry, SignInScreen, get_user, require_signed_in
from .state import NO_EMAIL, Failed, FailureKind, Idle, Pending, SignInState, Succeeded
from .view import render

__all__ = [
    "Settings",
    "load_settings",
    "SignInFlowController",
    "SignInError",
    "ProviderUnavailable",
    "ProviderError",
    "AuthError",
    "BackendRejected",
    "BackendOther",
    "FirebaseAuthBackend",
    "GoogleIdentityProvider",
    "RedirectHandOff",
    "AuthBackend",
    "HandOff",
    "Identity",
    "IdentityProviderClient",
    "LaunchRequest",
    "LaunchResult",
    "ProviderCredential",
    "SignInConfig",
    "create_auth_router",
    "ScreenRegistry",
    "SignInScreen",
    "get_user",
    "require_signed_in",
    "NO_EMAIL",
    "Failed",
    "FailureKind",
    "Idle",
    "Pending",
    "SignInState",
    "Succeeded",
    "render",
]
