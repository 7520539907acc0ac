"""
Credential Provider Interface
Abstract base class for the ways this service obtains Admin API access tokens
"""
from abc import ABC, abstractmethod
from typing import Optional

from app.config import AuthStrategy

class CredentialError(Exception):
    """An access token could not be obtained"""

class CredentialProvider(ABC):
    """Abstract interface for access token strategies"""

    strategy: AuthStrategy

    @abstractmethod
    async def get_access_token(self, shop: str, session_token: Optional[str] = None) -> str:
        """
        Get a currently valid Admin API access token

        Args:
            shop: Canonical shop domain
            session_token: The caller's verified session token (token exchange only)

        Returns:
            Access token string

        Raises:
            CredentialError if no token could be obtained
        """
        pass

    @property
    def single_tenant(self) -> bool:
        """Whether requests must target the one configured shop"""
        return False
