"""
Port (interface) for single-user session tokens.
Infrastructure adapters (e.g. JoseSessionTokenService) must implement this interface.
"""

from abc import ABC, abstractmethod


class ISessionTokenService(ABC):
    @abstractmethod
    def issue(self, username: str) -> str:
        """Return an opaque, signed session token for *username*."""
        ...

    @abstractmethod
    def validate(self, token: str) -> dict:
        """Validate a session token and return its decoded claims.

        Raises:
            ValueError: if the token is malformed, tampered with, or expired.
        """
        ...
