"""
roblox_client.py
================
Roblox OAuth2 login and public games API clients used by LevelHub.

Authentication
--------------
Standard OAuth2 authorization code flow against Roblox Open Cloud:

    GET  https://apis.roblox.com/oauth/v1/authorize
             ?client_id=...&redirect_uri=...&scope=openid profile
             &response_type=code&state=...
    POST https://apis.roblox.com/oauth/v1/token      (form-encoded)

The access token is then used once to look up the signed-in user:

    GET  https://users.roblox.com/v1/users/authenticated

Register an OAuth app at https://create.roblox.com/dashboard/credentials.

Usage
-----
::

    from roblox_client import RobloxIdentityProvider, RobloxGamesClient

    provider = RobloxIdentityProvider("client-id", "secret",
                                      "http://localhost:3000/auth/callback")
    identity = provider.authenticate(code)
    # {"access_token": "...", "roblox_id": "42", "username": "builderman"}

    games = RobloxGamesClient().get_games(["6742973974"])
    # [{"id": 6742973974, "rootPlaceId": ..., "name": "...", "visits": ...}]
"""

from __future__ import annotations

import logging
import urllib.parse
from typing import Any, Dict, Iterable, List

import requests

from identity_provider import Identity, IdentityProvider, ProviderError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
_AUTH_URL      = "https://apis.roblox.com/oauth/v1/authorize"
_TOKEN_URL     = "https://apis.roblox.com/oauth/v1/token"
_USER_URL      = "https://users.roblox.com/v1/users/authenticated"
_GAMES_URL     = "https://games.roblox.com/v1/games"
_SCOPES        = ("openid", "profile")
_DEFAULT_TIMEOUT = 10  # seconds


class RobloxAuthError(ProviderError):
    """Raised when the OAuth exchange or the identity lookup fails."""


class RobloxAPIError(ProviderError):
    """Raised when the Roblox games API returns an unexpected response."""


def _json_or_raise(resp: requests.Response, error_cls, what: str) -> Any:
    try:
        return resp.json()
    except ValueError as exc:
        raise error_cls(f"Malformed JSON from {what}") from exc


class RobloxIdentityProvider(IdentityProvider):
    """Roblox OAuth2 authorization-code client.

    Args:
        client_id:     Roblox OAuth application client ID.
        client_secret: Roblox OAuth application client secret.
        redirect_uri:  Registered callback URL (``.../auth/callback``).
        timeout:       HTTP request timeout in seconds.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        timeout: int = _DEFAULT_TIMEOUT,
    ) -> None:
        if not client_id or not client_secret:
            raise ValueError("client_id and client_secret must not be empty")
        self._client_id     = client_id
        self._client_secret = client_secret
        self._redirect_uri  = redirect_uri
        self._timeout       = timeout
        self._session       = requests.Session()

    def get_provider_name(self) -> str:
        return "roblox"

    # ------------------------------------------------------------------
    # OAuth2 helpers
    # ------------------------------------------------------------------

    def build_auth_url(self, state: str = '') -> str:
        """Return the Roblox authorization URL.

        Args:
            state: Optional CSRF state echoed back on the callback.

        Returns:
            Full authorization URL.
        """
        params: Dict[str, str] = {
            'client_id':     self._client_id,
            'redirect_uri':  self._redirect_uri,
            'scope':         ' '.join(_SCOPES),
            'response_type': 'code',
        }
        if state:
            params['state'] = state
        return f"{_AUTH_URL}?{urllib.parse.urlencode(params)}"

    def exchange_code(self, code: str) -> str:
        """Exchange an authorization code for an access token.

        Returns:
            The access token string.

        Raises:
            RobloxAuthError: Network error, non-2xx status, or a response
                without ``access_token``.
        """
        data = {
            'grant_type':    'authorization_code',
            'code':          code,
            'redirect_uri':  self._redirect_uri,
            'client_id':     self._client_id,
            'client_secret': self._client_secret,
        }
        try:
            resp = self._session.post(_TOKEN_URL, data=data, timeout=self._timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise RobloxAuthError(f"Roblox token exchange failed: {exc}") from exc

        body = _json_or_raise(resp, RobloxAuthError, "token endpoint")
        token = body.get('access_token') if isinstance(body, dict) else None
        if not token:
            raise RobloxAuthError("Roblox token response missing 'access_token'")
        logger.debug("Roblox token exchange succeeded")
        return token

    def fetch_identity(self, access_token: str) -> Identity:
        """Look up the user owning *access_token*.

        Returns:
            ``{"access_token", "roblox_id", "username"}`` with the numeric
            Roblox id converted to a string.

        Raises:
            RobloxAuthError: Network error, non-2xx status, or a payload
                without an ``id``.
        """
        try:
            resp = self._session.get(
                _USER_URL,
                headers={'Authorization': f'Bearer {access_token}'},
                timeout=self._timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise RobloxAuthError(f"Roblox user lookup failed: {exc}") from exc

        body = _json_or_raise(resp, RobloxAuthError, "users endpoint")
        if not isinstance(body, dict) or body.get('id') in (None, ''):
            raise RobloxAuthError("Roblox user payload missing 'id'")
        return {
            'access_token': access_token,
            'roblox_id':    str(body['id']),
            'username':     str(body.get('name') or ''),
        }


class RobloxGamesClient:
    """Read-only client for the public ``games.roblox.com`` metadata API."""

    def __init__(self, timeout: int = _DEFAULT_TIMEOUT) -> None:
        self._timeout = timeout
        self._session = requests.Session()

    def get_games(self, universe_ids: Iterable[str]) -> List[Dict[str, Any]]:
        """Return the raw game entries for *universe_ids*.

        Each entry contains (among others)::

            {
              "id":            6742973974,   # universe id
              "rootPlaceId":   123456,
              "name":          "My Obby",
              "playing":       12,
              "visits":        34567,
              "favoritedCount": 890
            }

        Returns:
            The ``data`` list; empty when the API returns none.

        Raises:
            RobloxAPIError: Network error, non-2xx status, or malformed JSON.
        """
        ids = ','.join(str(u) for u in universe_ids)
        try:
            resp = self._session.get(
                _GAMES_URL,
                params={'universeIds': ids},
                timeout=self._timeout,
            )
            resp.raise_for_status()
        except requests.HTTPError as exc:
            raise RobloxAPIError(
                f"Roblox games API error {resp.status_code} for universes {ids}"
            ) from exc
        except requests.RequestException as exc:
            raise RobloxAPIError(f"Network error calling Roblox games API: {exc}") from exc

        body = _json_or_raise(resp, RobloxAPIError, "games endpoint")
        if not isinstance(body, dict):
            raise RobloxAPIError("Roblox games response is not a JSON object")
        data = body.get('data') or []
        if not isinstance(data, list):
            raise RobloxAPIError("Roblox games 'data' is not a list")
        return data
