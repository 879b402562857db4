"""
FastAPI app: Google one-tap sign-in exchanged for a Firebase session.

Decisions:
- .env is loaded before importing onetap_auth so GOOGLE_*, FIREBASE_* and
  SESSION_SECRET are available when settings are read (Ruff E402 suppressed).
- One sign-in screen per browser session; the controller for it is built by
  build_controller() with the shared provider and backend adapters.
- Session secret from SESSION_SECRET env; default "change-me" is for dev only.
"""

import logging

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from starlette.middleware.sessions import SessionMiddleware

load_dotenv()

# Load .env before onetap_auth so settings see it; Ruff E402.
from onetap_auth import (  # noqa: E402
    FirebaseAuthBackend,
    GoogleIdentityProvider,
    RedirectHandOff,
    ScreenRegistry,
    SignInFlowController,
    create_auth_router,
    get_user,
    load_settings,
    require_signed_in,
)

settings = load_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
# httpx/httpcore log every request line, which includes the Firebase API key.
for _noisy in ("httpx", "httpcore"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

provider = GoogleIdentityProvider(
    client_secret=settings.google_client_secret,
    redirect_uri=settings.redirect_uri,
)
backend = FirebaseAuthBackend(
    api_key=settings.firebase_api_key,
    request_uri=settings.firebase_request_uri,
)


def on_login_success(user_id: str, email: str, display_name):
    logger.info("User %s signed in", user_id)


def build_controller(hand_off: RedirectHandOff) -> SignInFlowController:
    """Fresh controller for a new sign-in screen."""
    return SignInFlowController(
        provider=provider,
        backend=backend,
        hand_off=hand_off,
        config=settings.sign_in,
        on_login_success=on_login_success,
        provider_name=settings.provider_name,
    )


registry = ScreenRegistry(build_controller)

app = FastAPI()
app.add_middleware(SessionMiddleware, secret_key=settings.session_secret)
app.include_router(create_auth_router(registry, settings.provider_name))


@app.get("/")
async def home(request: Request):
    user = get_user(request)
    return {"logged_in": bool(user), "user": user}


# Example protected route
@app.get("/profile")
async def profile(user=Depends(require_signed_in())):
    return {"ok": True, "user": user}
