"""
Firebase Authentication backend.

Exchanges a Google ID token for a Firebase user through the Identity Toolkit
REST endpoint accounts:signInWithIdp. Requires FIREBASE_API_KEY.
"""

import logging
from typing import Optional
from urllib.parse import urlencode

import httpx

from onetap_auth.errors import AuthError, BackendOther, BackendRejected
from onetap_auth.protocol import AuthBackend, Identity

logger = logging.getLogger(__name__)

SIGN_IN_WITH_IDP_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithIdp"

# Firebase error messages meaning the identity provider rejected the credential
PROVIDER_REJECTION_ERRORS = ("INVALID_IDP_RESPONSE",)


class FirebaseAuthBackend(AuthBackend):
    """AuthBackend that signs the provider credential in to Firebase Authentication."""

    def __init__(
        self,
        api_key: str,
        request_uri: str = "http://localhost",
        provider_id: str = "google.com",
        timeout: float = 20,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.request_uri = request_uri
        self.provider_id = provider_id
        self.timeout = timeout
        self._transport = transport

    async def exchange_credential(self, provider_id_token: str) -> Optional[Identity]:
        """
        POST the ID token to accounts:signInWithIdp.

        Returns the Firebase identity, or None when the response has no localId.
        Raises BackendRejected when the identity provider refused the token and
        BackendOther for every other failure.
        """
        if not self.api_key:
            raise BackendOther("FIREBASE_API_KEY is not configured")

        body = {
            "postBody": urlencode({"id_token": provider_id_token, "providerId": self.provider_id}),
            "requestUri": self.request_uri,
            "returnIdpCredential": True,
            "returnSecureToken": True,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                r = await client.post(SIGN_IN_WITH_IDP_URL, params={"key": self.api_key}, json=body)
        except httpx.HTTPError as e:
            raise BackendOther(str(e) or type(e).__name__) from e

        if r.is_error:
            raise self._error_from_response(r)

        try:
            data = r.json()
        except ValueError as e:
            raise BackendOther("malformed signInWithIdp response") from e

        local_id = data.get("localId") if isinstance(data, dict) else None
        if not local_id:
            logger.warning("signInWithIdp succeeded without a localId")
            return None

        return Identity(
            user_id=local_id,
            email=data.get("email"),
            display_name=data.get("displayName"),
            photo_url=data.get("photoUrl"),
        )

    @staticmethod
    def _error_from_response(response: httpx.Response) -> AuthError:
        """
        Map a Firebase error body {"error": {"code", "message"}} to the auth error taxonomy.

        Only an identity provider rejection carries the status code (BackendRejected);
        other Firebase errors (USER_DISABLED, OPERATION_NOT_ALLOWED, ...) keep their
        message as BackendOther.
        """
        try:
            error = response.json().get("error")
        except (ValueError, AttributeError):
            error = None

        if isinstance(error, dict):
            message = error.get("message") or ""
            code = error.get("code")
            if isinstance(code, int) and message.startswith(PROVIDER_REJECTION_ERRORS):
                return BackendRejected(code, message)
            if message:
                return BackendOther(message)
        return BackendOther(f"signInWithIdp returned HTTP {response.status_code}")
