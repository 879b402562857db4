"""
Errors raised by the identity provider and auth backend adapters.

The controller never lets these escape: each one is turned into a Failed state.
"""


class SignInError(Exception):
    """Base class for sign-in collaborator failures."""


class ProviderUnavailable(SignInError):
    """The provider could not start a sign-in (network, configuration, no eligible account)."""


class ProviderError(SignInError):
    """The provider returned an unusable hand-off result."""


class AuthError(SignInError):
    """The backend failed to exchange the provider token."""


class BackendRejected(AuthError):
    """Structured rejection from the backend, carrying the provider status code."""

    def __init__(self, code: int, message: str = ""):
        self.code = code
        self.message = message
        super().__init__(f"{code}: {message}" if message else str(code))


class BackendOther(AuthError):
    """Any other backend failure (transport, malformed response)."""
