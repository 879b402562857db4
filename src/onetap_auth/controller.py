"""
SignInFlowController: the one-tap sign-in state machine.

Flow of one attempt:
    Idle -> Pending -> begin_sign_in -> hand-off (awaited) -> complete_sign_in
         -> exchange_credential -> Succeeded | Failed

Decisions:
- The Pending check and the transition into Pending happen before the first
  await, so a second start_sign_in() on the same event loop is a no-op while an
  attempt is in flight. No lock is needed.
- Every collaborator failure ends in Failed(message, kind); nothing propagates
  to the caller. No automatic retries.
- on_login_success runs after the Succeeded transition; if it raises, the error
  is logged and the state stays Succeeded.
"""

import logging
from typing import Callable, List, Optional

from onetap_auth.errors import AuthError, BackendRejected
from onetap_auth.protocol import (
    AuthBackend,
    HandOff,
    IdentityProviderClient,
    LaunchRequest,
    LaunchResult,
    SignInConfig,
)
from onetap_auth.state import (
    NO_EMAIL,
    Failed,
    FailureKind,
    Idle,
    Pending,
    SignInState,
    Succeeded,
)

logger = logging.getLogger(__name__)

StateListener = Callable[[SignInState], None]
LoginSuccessCallback = Callable[[str, str, Optional[str]], None]


class SignInFlowController:
    """Drives the two-phase provider hand-off + backend exchange and owns SignInState."""

    def __init__(
        self,
        provider: IdentityProviderClient,
        backend: AuthBackend,
        hand_off: HandOff,
        config: SignInConfig,
        on_login_success: Optional[LoginSuccessCallback] = None,
        provider_name: str = "Google",
    ):
        self._provider = provider
        self._backend = backend
        self._hand_off = hand_off
        self._config = config
        self._on_login_success = on_login_success
        self.provider_name = provider_name
        self._state: SignInState = Idle()
        self._listeners: List[StateListener] = []

    @property
    def state(self) -> SignInState:
        return self._state

    @property
    def busy(self) -> bool:
        """True while an attempt is in flight; the trigger must be disabled."""
        return isinstance(self._state, Pending)

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener called synchronously on every transition. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _transition(self, state: SignInState) -> None:
        logger.debug("Sign-in state %s -> %s", type(self._state).__name__, type(state).__name__)
        self._state = state
        for listener in list(self._listeners):
            listener(state)

    def _fail(self, kind: FailureKind, message: str) -> None:
        self._transition(Failed(message=message, kind=kind))

    async def start_sign_in(self) -> None:
        """Run one sign-in attempt to completion. No effect while an attempt is pending."""
        if self.busy:
            logger.info("Sign-in already in progress; ignoring start request")
            return

        # Reset before every attempt so nothing from a previous one leaks through.
        if not isinstance(self._state, Idle):
            self._transition(Idle())
        self._transition(Pending())
        logger.info("Starting %s sign-in", self.provider_name)

        try:
            launch_request = await self._provider.begin_sign_in(self._config)
        except Exception as e:
            logger.error("Begin sign-in failed: %s", e, exc_info=True)
            self._fail(FailureKind.PROVIDER_UNAVAILABLE, f"{self.provider_name} Sign-In Failed: {e}")
            return

        try:
            launch_result = await self._hand_off.launch(launch_request)
        except Exception as e:
            logger.error("Sign-in hand-off failed: %s", e, exc_info=True)
            self._fail(FailureKind.UNEXPECTED, f"{self.provider_name} Sign-In Error: {e}")
            return

        await self._on_hand_off_result(launch_request, launch_result)

    async def _on_hand_off_result(self, launch_request: LaunchRequest, launch_result: LaunchResult) -> None:
        """Extract the provider token and exchange it with the backend."""
        try:
            credential = await self._provider.complete_sign_in(launch_request, launch_result)
            token = credential.id_token
            if not token:
                self._fail(FailureKind.TOKEN_MISSING, f"{self.provider_name} token is null")
                return

            try:
                identity = await self._backend.exchange_credential(token)
            except BackendRejected as e:
                logger.error("Credential exchange rejected (code=%s): %s", e.code, e.message)
                message = f"{self.provider_name} Sign-In Failed: {e.code}"
                if e.message:
                    message = f"{message} ({e.message})"
                self._fail(FailureKind.BACKEND_REJECTED, message)
                return
            except AuthError as e:
                logger.error("Credential exchange failed: %s", e, exc_info=True)
                message = f"Authentication failed: {e}" if str(e) else "Unknown authentication error"
                self._fail(FailureKind.BACKEND_OTHER, message)
                return
        except Exception as e:
            logger.error("Sign-in error: %s", e, exc_info=True)
            self._fail(FailureKind.UNEXPECTED, f"{self.provider_name} Sign-In Error: {e}")
            return

        if identity is None or not identity.user_id:
            self._fail(FailureKind.INCONSISTENT_IDENTITY, "Authentication failed. User is null.")
            return

        email = identity.email or NO_EMAIL
        self._transition(
            Succeeded(
                user_id=identity.user_id,
                email=email,
                display_name=identity.display_name,
                photo_url=identity.photo_url,
            )
        )
        logger.info("Sign-in succeeded for user %s", identity.user_id)

        if self._on_login_success is not None:
            try:
                self._on_login_success(identity.user_id, email, identity.display_name)
            except Exception:
                logger.exception("on_login_success callback raised")
