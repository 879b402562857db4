"""
FastAPI auth router: login trigger, provider callback, sign-in screen, /me, logout.

The sign-in attempt runs as a background task per screen. /login waits until the
attempt either launches the provider UI (redirect to it) or fails before the
hand-off; /auth/callback and /signin/cancel resolve the hand-off and wait for the
attempt to finish.
"""

import asyncio
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, RedirectResponse

from onetap_auth.protocol import LaunchResult
from onetap_auth.session import ScreenRegistry, SignInScreen, get_user, store_user
from onetap_auth.state import Failed, Idle, Succeeded
from onetap_auth.view import render

logger = logging.getLogger(__name__)


def create_auth_router(registry: ScreenRegistry, provider_name: str = "Google"):
    """Create an APIRouter with /login, /auth/callback, /signin, /signin/cancel, /me, and /logout endpoints."""
    router = APIRouter()

    def _view(screen: SignInScreen, status_code: int = 200) -> JSONResponse:
        return JSONResponse(render(screen.controller.state, provider_name), status_code=status_code)

    async def _finish(request: Request, screen: SignInScreen) -> None:
        """Wait for the running attempt and record the user on success."""
        if screen.attempt is not None:
            await screen.attempt
        state = screen.controller.state
        if isinstance(state, Succeeded):
            store_user(request, state)

    @router.get("/login")
    async def login(request: Request):
        """Start a sign-in attempt and redirect the user to the provider UI."""
        screen = registry.open(request)
        # Check and claim the screen without awaiting in between; a second /login
        # from the same session sees the running task and is refused.
        if screen.busy:
            return _view(screen, status_code=409)

        opened = screen.hand_off.expect_launch()
        screen.attempt = asyncio.create_task(screen.controller.start_sign_in())
        done, _ = await asyncio.wait({screen.attempt, opened}, return_when=asyncio.FIRST_COMPLETED)

        if opened in done:
            return RedirectResponse(url=opened.result().url)

        # Attempt finished before the hand-off (begin_sign_in failed).
        opened.cancel()
        status_code = 400 if isinstance(screen.controller.state, Failed) else 200
        return _view(screen, status_code=status_code)

    @router.get("/auth/callback", name="auth_callback")
    async def auth_callback(request: Request):
        """Handle the provider redirect: hand the parameters to the waiting attempt, then show the result."""
        screen = registry.get(request)
        if screen is None or not screen.hand_off.resolve(LaunchResult(params=dict(request.query_params))):
            return JSONResponse({"error": "No sign-in attempt is awaiting a callback"}, status_code=400)

        await _finish(request, screen)
        return RedirectResponse(url="/signin", status_code=303)

    @router.post("/signin/cancel")
    async def cancel_sign_in(request: Request):
        """The user closed the provider UI without choosing an account."""
        screen = registry.get(request)
        if screen is None or not screen.hand_off.cancel():
            return JSONResponse({"error": "No sign-in attempt is awaiting a callback"}, status_code=400)

        await _finish(request, screen)
        return _view(screen)

    @router.get("/signin")
    async def sign_in_screen(request: Request):
        """Return the rendered sign-in screen for this session (Idle when none is open)."""
        screen = registry.get(request)
        if screen is None:
            return JSONResponse(render(Idle(), provider_name))
        return _view(screen)

    @router.delete("/signin")
    async def close_sign_in(request: Request):
        """Tear down this session's sign-in screen."""
        closed = registry.close(request)
        return {"closed": closed is not None}

    @router.get("/me")
    async def me(request: Request):
        """Return current user; redirect to /login if not authenticated."""
        user = get_user(request)
        if user is None:
            return RedirectResponse(url="/login")
        return {"user": user}

    @router.get("/logout")
    async def logout(request: Request):
        """Clear session and redirect to home."""
        registry.close(request)
        request.session.clear()
        return RedirectResponse(url="/")

    return router
