"""
Auth provider interface

Routers receive a provider through dependency injection instead of a
globally registered strategy. Each provider implements the operations it
supports and rejects the rest with AuthenticationError.
"""
from abc import ABC, abstractmethod
from typing import Dict, Any

from app.core.exceptions import AuthenticationError
from app.models.user import LinkedAccount, StreamingProvider


class AuthProvider(ABC):

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider identifier (e.g., 'local', 'spotify')"""
        pass

    async def authenticate(self, credentials: Dict[str, Any]) -> str:
        """
        Verify credentials.

        Returns:
            The authenticated user's id

        Raises:
            AuthenticationError on any mismatch
        """
        raise AuthenticationError(f"{self.name} does not support sign-in")

    async def link_account(
        self,
        user_id: str,
        provider: StreamingProvider,
        callback_payload: Dict[str, Any]
    ) -> LinkedAccount:
        """
        Attach an external account to an existing user.

        Args:
            user_id: The authenticated user
            provider: Which streaming service is being linked
            callback_payload: Query parameters of the OAuth callback

        Returns:
            The linked account with its tokens
        """
        raise AuthenticationError(f"{self.name} does not support account linking")
