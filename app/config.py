"""
Service Configuration
Central place to configure the Shopify app credentials and the auth strategy
The strategy is chosen once at startup from whatever credentials are present
"""
from enum import Enum
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional
import os

from app.errors import ConfigError
from app.utils.shop import normalize_shop

class AuthStrategy(str, Enum):
    """How the service obtains Admin API access tokens"""
    STATIC = "static"                          # Pre-provisioned custom app token
    CLIENT_CREDENTIALS = "client_credentials"  # Client id/secret grant, cached per shop
    TOKEN_EXCHANGE = "token_exchange"          # Session token exchanged on every request
    SESSION_STORAGE = "session_storage"        # Offline sessions written by the OAuth install flow

# Strategies serving exactly one configured shop
SINGLE_TENANT_STRATEGIES = (AuthStrategy.STATIC, AuthStrategy.CLIENT_CREDENTIALS)

class Settings(BaseSettings):
    """Application Settings"""

    # ============================================
    # SHOPIFY APP CREDENTIALS
    # ============================================

    SHOPIFY_SHOP: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("SHOPIFY_SHOP", "SHOP")
    )
    SHOPIFY_CLIENT_ID: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("SHOPIFY_CLIENT_ID", "SHOPIFY_API_KEY")
    )
    SHOPIFY_CLIENT_SECRET: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("SHOPIFY_CLIENT_SECRET", "SHOPIFY_API_SECRET")
    )

    # Custom app token (static strategy)
    SHOPIFY_ACCESS_TOKEN: Optional[str] = None

    # sqlite file written by the OAuth install flow (session_storage strategy)
    SESSION_DB_PATH: Optional[str] = None

    # Leave unset to pick the strategy from the credentials above
    AUTH_STRATEGY: Optional[AuthStrategy] = None

    # ============================================
    # ADMIN API SETTINGS
    # ============================================

    SHOPIFY_API_VERSION: str = "2025-01"
    SHOPIFY_HTTP_TIMEOUT: float = 30.0

    # Clock skew allowed when checking session token exp/nbf
    JWT_LEEWAY_SECONDS: int = 5

    # ============================================
    # APPLICATION SETTINGS
    # ============================================

    APP_NAME: str = "Draft Orders BFF"
    PORT: int = 3000
    LOG_LEVEL: str = "INFO"

    # Origins are reflected only when their host ends with one of these
    CORS_ALLOWED_SUFFIXES: List[str] = [
        "shopify.com",
        "shopifycdn.com",
        "myshopify.com",
        "shopifypreview.com",
    ]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        populate_by_name=True,
    )

    def resolve_strategy(self) -> AuthStrategy:
        """Explicit AUTH_STRATEGY wins, otherwise infer from configured credentials"""
        if self.AUTH_STRATEGY is not None:
            return self.AUTH_STRATEGY
        if self.SHOPIFY_ACCESS_TOKEN:
            return AuthStrategy.STATIC
        if self.SESSION_DB_PATH:
            return AuthStrategy.SESSION_STORAGE
        return AuthStrategy.CLIENT_CREDENTIALS

    def check(self) -> AuthStrategy:
        """
        Validate configuration for the selected strategy

        Returns:
            The resolved AuthStrategy

        Raises:
            ConfigError naming every missing variable at once
        """
        strategy = self.resolve_strategy()

        # Session tokens are always verified with the app secret
        required = {"SHOPIFY_CLIENT_SECRET": self.SHOPIFY_CLIENT_SECRET}
        if strategy == AuthStrategy.STATIC:
            required["SHOPIFY_SHOP"] = self.SHOPIFY_SHOP
            required["SHOPIFY_ACCESS_TOKEN"] = self.SHOPIFY_ACCESS_TOKEN
        elif strategy == AuthStrategy.CLIENT_CREDENTIALS:
            required["SHOPIFY_SHOP"] = self.SHOPIFY_SHOP
            required["SHOPIFY_CLIENT_ID"] = self.SHOPIFY_CLIENT_ID
        elif strategy == AuthStrategy.TOKEN_EXCHANGE:
            required["SHOPIFY_CLIENT_ID"] = self.SHOPIFY_CLIENT_ID
        elif strategy == AuthStrategy.SESSION_STORAGE:
            required["SESSION_DB_PATH"] = self.SESSION_DB_PATH

        missing = sorted(name for name, value in required.items() if not value)
        if missing:
            raise ConfigError(strategy.value, missing)

        if strategy in SINGLE_TENANT_STRATEGIES and not self.shop_domain:
            raise ConfigError(strategy.value, [], detail=f"SHOPIFY_SHOP is not a valid shop: {self.SHOPIFY_SHOP!r}")

        if strategy == AuthStrategy.SESSION_STORAGE and not os.path.isfile(self.SESSION_DB_PATH):
            raise ConfigError(
                strategy.value, [],
                detail=f"SESSION_DB_PATH does not exist: {self.SESSION_DB_PATH!r} (install the app once to create it)",
            )

        return strategy

    @property
    def shop_domain(self) -> str:
        """Configured shop in canonical form ("" when unset)"""
        return normalize_shop(self.SHOPIFY_SHOP)

def load_settings() -> Settings:
    """Read settings from the environment and .env"""
    return Settings()
