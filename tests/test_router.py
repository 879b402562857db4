"""Tests for the auth router (login trigger, provider callback, sign-in screen)."""
import asyncio

import httpx
import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from starlette.middleware.sessions import SessionMiddleware

from onetap_auth.controller import SignInFlowController
from onetap_auth.errors import BackendRejected, ProviderUnavailable
from onetap_auth.protocol import Identity, LaunchRequest, ProviderCredential, SignInConfig
from onetap_auth.router import create_auth_router
from onetap_auth.session import ScreenRegistry

LAUNCH_URL = "https://accounts.google.com/o/oauth2/v2/auth?state=state-1"


class FakeProvider:
    """Launches a fixed URL; the code on the callback becomes the ID token."""

    def __init__(self, begin_error=None):
        self.begin_error = begin_error
        self.begin_calls = 0

    async def begin_sign_in(self, config):
        self.begin_calls += 1
        if self.begin_error is not None:
            raise self.begin_error
        return LaunchRequest(url=LAUNCH_URL, state="state-1", client_id=config.server_client_id)

    async def complete_sign_in(self, request, result):
        code = result.params.get("code")
        return ProviderCredential(id_token=f"id-token-{code}" if code else None)


class FakeBackend:

    def __init__(self, error=None):
        self.error = error
        self.tokens = []

    async def exchange_credential(self, provider_id_token):
        self.tokens.append(provider_id_token)
        if self.error is not None:
            raise self.error
        return Identity(user_id="u1", email="a@b.com", display_name="Ada")


def make_app(provider, backend, logins=None):
    def on_login_success(user_id, email, display_name):
        if logins is not None:
            logins.append((user_id, email, display_name))

    registry = ScreenRegistry(
        lambda hand_off: SignInFlowController(
            provider,
            backend,
            hand_off,
            SignInConfig(server_client_id="test-client-id"),
            on_login_success=on_login_success,
        )
    )
    app = FastAPI()
    app.add_middleware(SessionMiddleware, secret_key="test-secret")
    app.include_router(create_auth_router(registry))
    app.state.registry = registry
    return app


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def fake_backend():
    return FakeBackend()


class TestLoginFlow:

    def test_full_sign_in(self, fake_provider, fake_backend):
        logins = []
        with TestClient(make_app(fake_provider, fake_backend, logins)) as client:
            assert client.get("/signin").json()["status"] == "idle"

            response = client.get("/login", follow_redirects=False)
            assert response.status_code == 307
            assert response.headers["location"] == LAUNCH_URL

            pending = client.get("/signin").json()
            assert pending["status"] == "pending"
            assert pending["trigger"]["enabled"] is False

            response = client.get("/auth/callback", params={"state": "state-1", "code": "c1"})
            assert response.status_code == 200
            view = response.json()
            assert view["status"] == "succeeded"
            assert view["success"]["greeting"] == "Hi a@b.com"

            me = client.get("/me").json()
            assert me["user"]["user_id"] == "u1"
            assert me["user"]["email"] == "a@b.com"

        assert fake_backend.tokens == ["id-token-c1"]
        assert logins == [("u1", "a@b.com", "Ada")]

    def test_login_while_pending_is_ignored(self, fake_provider, fake_backend):
        with TestClient(make_app(fake_provider, fake_backend)) as client:
            assert client.get("/login", follow_redirects=False).status_code == 307

            response = client.get("/login", follow_redirects=False)
            assert response.status_code == 409
            assert response.json()["status"] == "pending"
            assert fake_provider.begin_calls == 1

    @pytest.mark.asyncio
    async def test_concurrent_logins_start_one_attempt(self, fake_provider, fake_backend):
        app = make_app(fake_provider, fake_backend)
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            # Bind a screen to the session cookie first.
            assert (await client.get("/login")).status_code == 307
            assert (await client.post("/signin/cancel")).json()["status"] == "failed"

            first, second = await asyncio.wait_for(
                asyncio.gather(client.get("/login"), client.get("/login")), timeout=5
            )

            assert sorted([first.status_code, second.status_code]) == [307, 409]
            assert fake_provider.begin_calls == 2

            response = await client.get("/auth/callback", params={"state": "state-1", "code": "c1"})
            assert response.status_code == 303

            me = (await client.get("/me")).json()
            assert me["user"]["user_id"] == "u1"
        assert fake_backend.tokens == ["id-token-c1"]

    def test_begin_failure_returns_error_view(self, fake_backend):
        provider = FakeProvider(begin_error=ProviderUnavailable("no network"))
        with TestClient(make_app(provider, fake_backend)) as client:
            response = client.get("/login", follow_redirects=False)

            assert response.status_code == 400
            view = response.json()
            assert view["status"] == "failed"
            assert view["error"]["message"] == "Google Sign-In Failed: no network"
        assert fake_backend.tokens == []

    def test_backend_rejection_shows_code(self, fake_provider):
        backend = FakeBackend(error=BackendRejected(12501, "SIGN_IN_CANCELLED"))
        with TestClient(make_app(fake_provider, backend)) as client:
            client.get("/login", follow_redirects=False)
            view = client.get("/auth/callback", params={"state": "state-1", "code": "c1"}).json()

            assert view["status"] == "failed"
            assert "12501" in view["error"]["message"]
            assert client.get("/me", follow_redirects=False).status_code == 307

    def test_retry_after_failure(self, fake_provider, fake_backend):
        with TestClient(make_app(fake_provider, fake_backend)) as client:
            client.get("/login", follow_redirects=False)
            assert client.post("/signin/cancel").json()["status"] == "failed"

            assert client.get("/login", follow_redirects=False).status_code == 307
            assert client.get("/signin").json()["error"] is None

            view = client.get("/auth/callback", params={"state": "state-1", "code": "c2"}).json()
            assert view["status"] == "succeeded"
        assert fake_provider.begin_calls == 2


class TestCancelAndCallbackErrors:

    def test_cancel_never_calls_backend(self, fake_provider, fake_backend):
        with TestClient(make_app(fake_provider, fake_backend)) as client:
            client.get("/login", follow_redirects=False)
            response = client.post("/signin/cancel")

            assert response.status_code == 200
            view = response.json()
            assert view["status"] == "failed"
            assert view["error"]["message"] == "Google token is null"
            assert view["error"]["detail"] == "User canceled the Google sign-in process."
        assert fake_backend.tokens == []

    def test_provider_denial_on_callback(self, fake_provider, fake_backend):
        with TestClient(make_app(fake_provider, fake_backend)) as client:
            client.get("/login", follow_redirects=False)
            view = client.get("/auth/callback", params={"state": "state-1", "error": "access_denied"}).json()

            assert view["status"] == "failed"
            assert view["error"]["kind"] == "token_missing"
        assert fake_backend.tokens == []

    def test_callback_without_attempt(self, fake_provider, fake_backend):
        with TestClient(make_app(fake_provider, fake_backend)) as client:
            response = client.get("/auth/callback", params={"state": "x", "code": "y"})
            assert response.status_code == 400
            assert "error" in response.json()

    def test_cancel_without_attempt(self, fake_provider, fake_backend):
        with TestClient(make_app(fake_provider, fake_backend)) as client:
            client.get("/signin")
            assert client.post("/signin/cancel").status_code == 400


class TestScreenAllocation:

    def test_viewing_screen_allocates_nothing(self, fake_provider, fake_backend):
        app = make_app(fake_provider, fake_backend)
        with TestClient(app) as client:
            for _ in range(50):
                client.cookies.clear()
                assert client.get("/signin").json()["status"] == "idle"
        assert len(app.state.registry) == 0
        assert fake_provider.begin_calls == 0

    def test_login_reuses_session_screen(self, fake_provider, fake_backend):
        app = make_app(fake_provider, fake_backend)
        with TestClient(app) as client:
            client.get("/login", follow_redirects=False)
            client.post("/signin/cancel")
            client.get("/login", follow_redirects=False)
            assert len(app.state.registry) == 1


class TestTeardown:

    def test_delete_discards_screen(self, fake_provider, fake_backend):
        app = make_app(fake_provider, fake_backend)
        with TestClient(app) as client:
            client.get("/login", follow_redirects=False)
            assert len(app.state.registry) == 1

            assert client.delete("/signin").json() == {"closed": True}
            assert len(app.state.registry) == 0
            assert client.get("/signin").json()["status"] == "idle"
            assert len(app.state.registry) == 0
            assert client.delete("/signin").json() == {"closed": False}

    def test_logout_clears_user(self, fake_provider, fake_backend):
        with TestClient(make_app(fake_provider, fake_backend)) as client:
            client.get("/login", follow_redirects=False)
            client.get("/auth/callback", params={"state": "state-1", "code": "c1"})
            assert client.get("/me").json()["user"]["user_id"] == "u1"

            response = client.get("/logout", follow_redirects=False)
            assert response.status_code == 307
            assert response.headers["location"] == "/"

            response = client.get("/me", follow_redirects=False)
            assert response.status_code == 307
            assert response.headers["location"] == "/login"
