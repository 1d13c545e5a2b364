"""
identity_provider.py
====================
Provider-neutral interface for OAuth2 authorization-code login.

Route handlers in ``levelhub_server.py`` only talk to :class:`IdentityProvider`
so the login provider can be swapped without touching handler logic.  The
Roblox implementation lives in ``roblox_client.py``.

Login flow
----------
::

    url = provider.build_auth_url(state)      # redirect the browser here
    identity = provider.authenticate(code)    # on the callback
    # {"access_token": "...", "roblox_id": "123", "username": "builder"}
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict

# {"access_token": str, "roblox_id": str, "username": str}
Identity = Dict[str, str]


class ProviderError(Exception):
    """Base class for failures talking to an external provider."""


class IdentityProvider(ABC):
    """Abstract base class for OAuth2 identity providers"""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return the provider name (e.g., 'roblox')"""
        pass

    @abstractmethod
    def build_auth_url(self, state: str = '') -> str:
        """Return the provider URL the browser is redirected to for login."""
        pass

    @abstractmethod
    def exchange_code(self, code: str) -> str:
        """
        Exchange an authorization *code* for an access token.
        Raises ProviderError when the exchange fails for any reason.
        """
        pass

    @abstractmethod
    def fetch_identity(self, access_token: str) -> Identity:
        """
        Return the identity of the user who owns *access_token*.
        Raises ProviderError when the lookup fails for any reason.
        """
        pass

    def authenticate(self, code: str) -> Identity:
        """Run the full callback step: code → token → identity."""
        return self.fetch_identity(self.exchange_code(code))
