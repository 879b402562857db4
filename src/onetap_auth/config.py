"""
Settings for the sign-in flow, read from the environment.

main.py loads .env (python-dotenv) before calling load_settings(). The Google
server client id is a public value; the client secret, Firebase API key and
session secret must come from the environment.
"""

import os
from dataclasses import dataclass

from onetap_auth.protocol import SignInConfig

DEFAULT_REDIRECT_URI = "http://localhost:8000/auth/callback"


def _env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean env var; accepts 1/true/yes/on."""
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    sign_in: SignInConfig
    google_client_secret: str = ""
    redirect_uri: str = DEFAULT_REDIRECT_URI
    firebase_api_key: str = ""
    firebase_request_uri: str = "http://localhost"
    provider_name: str = "Google"
    session_secret: str = "change-me"
    log_level: str = "INFO"


def load_settings() -> Settings:
    """Build Settings from the current environment."""
    return Settings(
        sign_in=SignInConfig(
            server_client_id=os.getenv("GOOGLE_SERVER_CLIENT_ID", "").strip(),
            filter_by_authorized_accounts_only=_env_flag("GOOGLE_FILTER_BY_AUTHORIZED_ACCOUNTS"),
        ),
        google_client_secret=os.getenv("GOOGLE_CLIENT_SECRET", "").strip(),
        redirect_uri=os.getenv("OAUTH_REDIRECT_URI", DEFAULT_REDIRECT_URI).strip(),
        firebase_api_key=os.getenv("FIREBASE_API_KEY", "").strip(),
        firebase_request_uri=os.getenv("FIREBASE_REQUEST_URI", "http://localhost").strip(),
        provider_name=os.getenv("SIGNIN_PROVIDER_NAME", "Google").strip() or "Google",
        # Default "change-me" is for dev only.
        session_secret=os.getenv("SESSION_SECRET", "change-me"),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    )
