"""Credential providers for requests proxied to the content service.

The dispatcher only ever talks to an ``AuthGate``: it asks whether a
credential is needed and, if so, awaits one. How the credential is obtained
and how long it is cached is decided here.
"""

import asyncio
import time
from abc import ABC, abstractmethod
from typing import Optional

import httpx

from ..exceptions import CredentialError
from ..shared.config import Settings
from ..shared.logger import log_debug, log_error, log_info

# Refresh tokens this many seconds before the identity provider expires them
TOKEN_EXPIRY_SKEW = 60.0

TOKEN_ENDPOINT_PATH = "/oauth2/v1/token"


class AuthGate(ABC):
    """Decides whether proxied requests need a credential and provides it."""

    @abstractmethod
    def is_credential_required(self) -> bool:
        """Cheap check, safe to call for every request."""

    @abstractmethod
    async def acquire_credential(self) -> str:
        """Return the value for the outbound ``Authorization`` header."""

    async def close(self):
        """Release any resources held by the gate."""


class NoAuthGate(AuthGate):
    """The content service is public; nothing is injected."""

    def is_credential_required(self) -> bool:
        return False

    async def acquire_credential(self) -> str:
        return ""


class StaticAuthGate(AuthGate):
    """A fixed authorization value such as ``Basic ...`` from configuration."""

    def __init__(self, value: str):
        self._value = value

    def is_credential_required(self) -> bool:
        return bool(self._value)

    async def acquire_credential(self) -> str:
        return self._value


class ClientCredentialsAuthGate(AuthGate):
    """Obtains bearer tokens with the OAuth client-credentials grant.

    The token is memoized until shortly before it expires. Concurrent
    requests that find the cache empty wait on a single refresh instead of
    each calling the identity provider.
    """

    def __init__(
        self,
        idp_url: str,
        client_id: str,
        client_secret: str,
        scope: str,
        client: Optional[httpx.AsyncClient] = None,
        clock=time.monotonic,
    ):
        self.token_url = idp_url.rstrip("/") + TOKEN_ENDPOINT_PATH
        self.client_id = client_id
        self.client_secret = client_secret
        self.scope = scope
        self._clock = clock
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=httpx.Timeout(30.0))

        self._credential: Optional[str] = None
        self._expires_at = 0.0
        # Created on first use so it belongs to the serving loop
        self._lock: Optional[asyncio.Lock] = None

    def is_credential_required(self) -> bool:
        return True

    def _cached_credential(self) -> Optional[str]:
        if self._credential and self._clock() < self._expires_at:
            return self._credential
        return None

    async def acquire_credential(self) -> str:
        credential = self._cached_credential()
        if credential:
            return credential

        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            # Double-check after acquiring lock
            credential = self._cached_credential()
            if credential:
                return credential

            credential, expires_in = await self._request_token()
            self._credential = credential
            self._expires_at = self._clock() + max(expires_in - TOKEN_EXPIRY_SKEW, 0.0)
            log_info("Obtained content service token", component="auth_gate", expires_in=expires_in)
            return credential

    def invalidate(self):
        """Forget the cached token so the next request fetches a new one."""
        self._credential = None
        self._expires_at = 0.0

    async def _request_token(self):
        log_debug(f"Requesting client credentials token from {self.token_url}", component="auth_gate")
        try:
            response = await self.client.post(
                self.token_url,
                data={"grant_type": "client_credentials", "scope": self.scope},
                auth=(self.client_id, self.client_secret),
                headers={"Accept": "application/json"},
            )
        except httpx.RequestError as e:
            log_error("Token request failed", component="auth_gate", error=e, url=self.token_url)
            raise CredentialError(f"Token request to {self.token_url} failed: {e}") from e

        if response.status_code != 200:
            log_error(f"Token endpoint returned {response.status_code}", component="auth_gate",
                      status=response.status_code, url=self.token_url)
            raise CredentialError(
                f"Token endpoint returned {response.status_code}",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
            access_token = payload["access_token"]
        except (ValueError, KeyError) as e:
            raise CredentialError("Token endpoint response has no access_token") from e

        token_type = payload.get("token_type") or "Bearer"
        if token_type.lower() == "bearer":
            token_type = "Bearer"
        expires_in = float(payload.get("expires_in") or 0)
        return f"{token_type} {access_token}", expires_in

    async def close(self):
        if self._owns_client:
            await self.client.aclose()


def build_auth_gate(settings: Settings) -> AuthGate:
    """Pick the auth gate implied by the configuration.

    Client credentials win over a static ``AUTH`` value; with neither, proxied
    requests carry no authorization.
    """
    if settings.uses_client_credentials:
        log_info("Content requests authorized with client credentials", component="auth_gate")
        return ClientCredentialsAuthGate(
            idp_url=settings.idp_url,
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            scope=settings.client_scope_url,
        )
    if settings.auth:
        log_info("Content requests authorized with a static credential", component="auth_gate")
        return StaticAuthGate(settings.auth)
    log_info("Content requests are not authorized", component="auth_gate")
    return NoAuthGate()
