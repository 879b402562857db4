"""
Google identity provider.

Uses Authlib's OIDC client to build the Google sign-in URL, exchange the
authorization code returned on the redirect for a Google ID token, and check that
token against the nonce sent with the sign-in request. Requires the
server client id (from SignInConfig), GOOGLE_CLIENT_SECRET and the redirect URI.
"""

import logging

import httpx
from authlib.integrations.starlette_client import OAuth, OAuthError
from authlib.jose.errors import JoseError

from onetap_auth.errors import ProviderError, ProviderUnavailable
from onetap_auth.protocol import (
    IdentityProviderClient,
    LaunchRequest,
    LaunchResult,
    ProviderCredential,
    SignInConfig,
)

logger = logging.getLogger(__name__)

# OIDC discovery document for Google accounts
GOOGLE_METADATA_URL = "https://accounts.google.com/.well-known/openid-configuration"

# Error codes Google puts on the redirect when the user dismisses the UI
CANCELLED_ERRORS = {"access_denied", "interaction_required", "login_required", "account_selection_required"}


class GoogleIdentityProvider(IdentityProviderClient):
    """Identity provider that signs the user in with Google and returns the Google ID token."""

    def __init__(self, client_secret: str, redirect_uri: str, metadata_url: str = GOOGLE_METADATA_URL):
        """Store client settings; Authlib clients are registered per server client id on first use."""
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.metadata_url = metadata_url
        self.oauth = OAuth()

    def client_for(self, client_id: str):
        """Return the Authlib client registered for client_id, registering it if needed."""
        name = f"google-{client_id}"
        client = self.oauth.create_client(name)
        if client is None:
            client = self.oauth.register(
                name=name,
                client_id=client_id,
                client_secret=self.client_secret,
                server_metadata_url=self.metadata_url,
                client_kwargs={"scope": "openid email profile"},
            )
        return client

    async def begin_sign_in(self, config: SignInConfig) -> LaunchRequest:
        """Create the authorization URL (with state + nonce) for the Google sign-in UI."""
        if not config.server_client_id:
            raise ProviderUnavailable("server client id is not configured")

        # Authorized-accounts-only maps to a silent prompt; otherwise let the user pick an account.
        prompt = "none" if config.filter_by_authorized_accounts_only else "select_account"
        client = self.client_for(config.server_client_id)
        try:
            rv = await client.create_authorization_url(self.redirect_uri, prompt=prompt)
        except (OAuthError, httpx.HTTPError, RuntimeError, ValueError) as e:
            raise ProviderUnavailable(str(e) or type(e).__name__) from e

        return LaunchRequest(
            url=rv["url"],
            state=rv["state"],
            client_id=config.server_client_id,
            nonce=rv.get("nonce"),
        )

    async def complete_sign_in(self, request: LaunchRequest, result: LaunchResult) -> ProviderCredential:
        """Exchange the code from the redirect for tokens and return the Google ID token."""
        params = result.params
        error = params.get("error")
        if result.cancelled or error in CANCELLED_ERRORS:
            logger.info("Google sign-in returned without a credential (%s)", error or "cancelled")
            return ProviderCredential(id_token=None)
        if error:
            raise ProviderError(params.get("error_description") or error)
        if params.get("state") != request.state:
            raise ProviderError("state mismatch in sign-in response")

        code = params.get("code")
        if not code:
            return ProviderCredential(id_token=None)

        client = self.client_for(request.client_id)
        try:
            token = await client.fetch_access_token(redirect_uri=self.redirect_uri, code=code)
        except OAuthError as e:
            raise ProviderError(e.description or e.error) from e
        except httpx.HTTPError as e:
            raise ProviderError(str(e) or type(e).__name__) from e

        id_token = token.get("id_token")
        if id_token and request.nonce:
            await self._verify_nonce(client, token, request.nonce)
        return ProviderCredential(id_token=id_token)

    async def _verify_nonce(self, client, token: dict, nonce: str) -> None:
        """Check the ID token (signature, audience, nonce) against the launch request."""
        try:
            await client.parse_id_token(token, nonce)
        except (JoseError, ValueError) as e:
            raise ProviderError(f"ID token rejected: {e}") from e
        except httpx.HTTPError as e:
            raise ProviderError(str(e) or type(e).__name__) from e
