"""
Credential Provider Factory
Builds the one provider the deployment is configured for
"""
from typing import Optional

import httpx

from app.auth.credentials import (
    ClientCredentialsProvider,
    SessionStorageProvider,
    StaticTokenProvider,
    TokenExchangeProvider,
)
from app.auth.interface import CredentialProvider
from app.auth.session_storage import SessionStore, SqliteSessionStore
from app.config import AuthStrategy, Settings

class CredentialFactory:
    """Factory for creating credential provider instances"""

    @staticmethod
    def create_provider(
        settings: Settings,
        strategy: Optional[AuthStrategy] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        session_store: Optional[SessionStore] = None,
    ) -> CredentialProvider:
        """
        Create the credential provider for the configured strategy

        Args:
            settings: Validated settings
            strategy: Strategy returned by settings.check(); resolved again if omitted
            transport: Optional httpx transport for token endpoint calls
            session_store: Overrides the sqlite store for session_storage

        Returns:
            CredentialProvider instance
        """
        if strategy is None:
            strategy = settings.check()

        if strategy == AuthStrategy.STATIC:
            return StaticTokenProvider(settings.SHOPIFY_ACCESS_TOKEN)
        elif strategy == AuthStrategy.CLIENT_CREDENTIALS:
            return ClientCredentialsProvider(
                settings.SHOPIFY_CLIENT_ID,
                settings.SHOPIFY_CLIENT_SECRET,
                timeout=settings.SHOPIFY_HTTP_TIMEOUT,
                transport=transport,
            )
        elif strategy == AuthStrategy.TOKEN_EXCHANGE:
            return TokenExchangeProvider(
                settings.SHOPIFY_CLIENT_ID,
                settings.SHOPIFY_CLIENT_SECRET,
                timeout=settings.SHOPIFY_HTTP_TIMEOUT,
                transport=transport,
            )
        elif strategy == AuthStrategy.SESSION_STORAGE:
            if session_store is None:
                session_store = SqliteSessionStore(settings.SESSION_DB_PATH)
            return SessionStorageProvider(session_store)
        else:
            raise ValueError(f"Unsupported auth strategy: {strategy}")
