"""
Session-bound sign-in screens and signed-in user helpers.

Each browser session gets its own sign-in screen (controller + hand-off), found
through a random screen id stored in request.session. Screens live in memory only
and are discarded on teardown, logout, or eviction.

Decisions:
- Screens are only created by /login; viewing the screen never allocates one.
- The registry is bounded (max_screens, least recently used first) and screens
  untouched for idle_ttl_seconds are closed on the next open(). Eviction cancels
  an abandoned attempt still waiting on its hand-off.

The signed-in user is stored in request.session["user"] by the auth router and
require_signed_in() protects routes with it.
"""

import asyncio
import logging
import secrets
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi import HTTPException, Request

from onetap_auth.controller import SignInFlowController
from onetap_auth.handoff import RedirectHandOff
from onetap_auth.state import Succeeded

logger = logging.getLogger(__name__)

SCREEN_SESSION_KEY = "signin_screen_id"

DEFAULT_MAX_SCREENS = 1024
DEFAULT_IDLE_TTL_SECONDS = 30 * 60

ControllerFactory = Callable[[RedirectHandOff], SignInFlowController]


@dataclass
class SignInScreen:
    """One activation of the sign-in screen."""

    controller: SignInFlowController
    hand_off: RedirectHandOff
    attempt: Optional[asyncio.Task] = None
    touched_at: float = 0.0

    @property
    def busy(self) -> bool:
        """True from the moment an attempt task is created until it finishes."""
        if self.attempt is not None and not self.attempt.done():
            return True
        return self.controller.busy

    def close(self) -> None:
        """Cancel the attempt still in flight, if any."""
        if self.attempt is not None and not self.attempt.done():
            self.attempt.cancel()


class ScreenRegistry:
    """In-memory, bounded map of screen id -> SignInScreen."""

    def __init__(
        self,
        controller_factory: ControllerFactory,
        max_screens: int = DEFAULT_MAX_SCREENS,
        idle_ttl_seconds: float = DEFAULT_IDLE_TTL_SECONDS,
    ):
        self._controller_factory = controller_factory
        self.max_screens = max_screens
        self.idle_ttl_seconds = idle_ttl_seconds
        self._screens: "OrderedDict[str, SignInScreen]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._screens)

    def get(self, request: Request) -> Optional[SignInScreen]:
        """Return this session's screen, if one is open."""
        screen_id = request.session.get(SCREEN_SESSION_KEY)
        if not screen_id:
            return None
        screen = self._screens.get(screen_id)
        if screen is not None:
            screen.touched_at = time.monotonic()
            self._screens.move_to_end(screen_id)
        return screen

    def open(self, request: Request) -> SignInScreen:
        """Return this session's screen, creating a fresh one if needed."""
        self._evict_idle()
        screen = self.get(request)
        if screen is not None:
            return screen

        while len(self._screens) >= self.max_screens:
            oldest_id, oldest = self._screens.popitem(last=False)
            oldest.close()
            logger.info("Evicted sign-in screen %s (registry full)", oldest_id)

        hand_off = RedirectHandOff()
        screen = SignInScreen(
            controller=self._controller_factory(hand_off),
            hand_off=hand_off,
            touched_at=time.monotonic(),
        )
        screen_id = secrets.token_urlsafe(16)
        self._screens[screen_id] = screen
        request.session[SCREEN_SESSION_KEY] = screen_id
        logger.debug("Opened sign-in screen %s", screen_id)
        return screen

    def _evict_idle(self) -> None:
        """Close screens nobody has touched within idle_ttl_seconds."""
        cutoff = time.monotonic() - self.idle_ttl_seconds
        # Ordered by last use, so stop at the first fresh one.
        while self._screens:
            screen_id, screen = next(iter(self._screens.items()))
            if screen.touched_at > cutoff:
                break
            del self._screens[screen_id]
            screen.close()
            logger.info("Evicted idle sign-in screen %s", screen_id)

    def close(self, request: Request) -> Optional[SignInScreen]:
        """Tear down this session's screen. Returns the closed screen, if any."""
        screen_id = request.session.pop(SCREEN_SESSION_KEY, None)
        screen = self._screens.pop(screen_id, None) if screen_id else None
        if screen is not None:
            screen.close()
            logger.debug("Closed sign-in screen %s", screen_id)
        return screen


def store_user(request: Request, state: Succeeded) -> None:
    """Persist the signed-in identity in the session."""
    request.session["user"] = {
        "user_id": state.user_id,
        "email": state.email,
        "display_name": state.display_name,
        "photo_url": state.photo_url,
    }


def get_user(request: Request) -> Optional[dict]:
    """Return the signed-in user from the session (None if not signed in)."""
    user = request.session.get("user")
    return user if isinstance(user, dict) else None


def require_signed_in():
    """Dependency: a user must be signed in. Use as: Depends(require_signed_in())."""

    async def _dep(request: Request):
        user = get_user(request)
        if user is None:
            raise HTTPException(status_code=401, detail="Not authenticated")
        return user

    return _dep
