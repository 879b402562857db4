"""Shared test fixtures for the sign-in flow."""
from unittest.mock import AsyncMock, MagicMock

import pytest

from onetap_auth.protocol import (
    Identity,
    LaunchRequest,
    LaunchResult,
    ProviderCredential,
    SignInConfig,
)


@pytest.fixture
def sign_in_config():
    return SignInConfig(server_client_id="test-client-id.apps.googleusercontent.com")


@pytest.fixture
def launch_request():
    return LaunchRequest(
        url="https://accounts.google.com/o/oauth2/v2/auth?state=state-1",
        state="state-1",
        client_id="test-client-id.apps.googleusercontent.com",
        nonce="nonce-1",
    )


@pytest.fixture
def provider(launch_request):
    """Provider mock that launches successfully and yields token 'id-token-T'."""
    mock = MagicMock()
    mock.begin_sign_in = AsyncMock(return_value=launch_request)
    mock.complete_sign_in = AsyncMock(return_value=ProviderCredential(id_token="id-token-T"))
    return mock


@pytest.fixture
def backend():
    """Backend mock that resolves identity u1 / a@b.com."""
    mock = MagicMock()
    mock.exchange_credential = AsyncMock(
        return_value=Identity(
            user_id="u1",
            email="a@b.com",
            display_name="Ada",
            photo_url="https://example.com/ada.png",
        )
    )
    return mock


@pytest.fixture
def hand_off():
    """Hand-off mock that returns immediately with an authorization code."""
    mock = MagicMock()
    mock.launch = AsyncMock(return_value=LaunchResult(params={"state": "state-1", "code": "code-1"}))
    return mock
