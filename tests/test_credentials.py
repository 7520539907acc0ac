"""
Tests for credential providers, the token cache and provider selection.
"""

import httpx
import pytest

from app.auth.credentials import (
    ID_TOKEN_TYPE,
    OFFLINE_ACCESS_TOKEN_TYPE,
    TOKEN_EXCHANGE_GRANT,
    ClientCredentialsProvider,
    SessionNotFoundError,
    SessionStorageProvider,
    StaticTokenProvider,
    TokenExchangeProvider,
)
from app.auth.factory import CredentialFactory
from app.auth.interface import CredentialError
from app.auth.session_storage import InMemorySessionStore, ShopSession, SqliteSessionStore
from app.config import AuthStrategy
from app.utils.token_cache import TokenCache

from conftest import CLIENT_ID, SECRET, SHOP, make_settings


def client_credentials_provider(shopify, clock):
    return ClientCredentialsProvider(
        CLIENT_ID, SECRET, cache=TokenCache(clock=clock), transport=shopify.transport
    )


class TestTokenCache:
    """Tests for TokenCache expiry handling."""

    def test_valid_until_margin(self, clock):
        cache = TokenCache(clock=clock)
        cache.set(SHOP, "tok", expires_in=3600)
        clock.advance(3539)
        assert cache.get(SHOP) == "tok"
        clock.advance(1)
        assert cache.get(SHOP) is None

    def test_no_expiry_never_expires(self, clock):
        cache = TokenCache(clock=clock)
        cache.set(SHOP, "tok")
        clock.advance(10 ** 9)
        assert cache.get(SHOP) == "tok"

    def test_one_slot_per_shop(self, clock):
        cache = TokenCache(clock=clock)
        cache.set(SHOP, "a", expires_in=3600)
        cache.set("bar.myshopify.com", "b", expires_in=3600)
        cache.set(SHOP, "c", expires_in=3600)
        assert cache.get(SHOP) == "c"
        assert cache.get("bar.myshopify.com") == "b"
        assert len(cache.entries) == 2

    def test_repr_masks_token(self, clock):
        entry = TokenCache(clock=clock).set(SHOP, "shpat_secretsecretsecret", expires_in=10)
        assert "secretsecret" not in repr(entry)


class TestClientCredentialsProvider:
    """Tests for the client credentials grant."""

    @pytest.mark.asyncio
    async def test_posts_client_credentials_grant(self, shopify, clock):
        provider = client_credentials_provider(shopify, clock)
        token = await provider.get_access_token(SHOP)

        assert token == "shpat_issued_token_0001"
        request = shopify.requests[0]
        assert str(request.url) == "https://foo.myshopify.com/admin/oauth/access_token"
        assert request.headers["content-type"] == "application/x-www-form-urlencoded"
        assert shopify.token_requests[0] == {
            "client_id": CLIENT_ID,
            "client_secret": SECRET,
            "grant_type": "client_credentials",
        }

    @pytest.mark.asyncio
    async def test_cached_until_refresh_margin(self, shopify, clock):
        provider = client_credentials_provider(shopify, clock)
        first = await provider.get_access_token(SHOP)

        clock.advance(3000)
        assert await provider.get_access_token(SHOP) == first
        assert len(shopify.token_requests) == 1

        clock.advance(541)
        second = await provider.get_access_token(SHOP)
        assert second != first
        assert len(shopify.token_requests) == 2

    @pytest.mark.asyncio
    async def test_token_without_expiry_is_kept(self, shopify, clock):
        shopify.expires_in = None
        provider = client_credentials_provider(shopify, clock)
        first = await provider.get_access_token(SHOP)
        clock.advance(10 ** 6)
        assert await provider.get_access_token(SHOP) == first
        assert len(shopify.token_requests) == 1

    @pytest.mark.asyncio
    async def test_failure_leaves_cache_untouched(self, shopify, clock):
        provider = client_credentials_provider(shopify, clock)
        await provider.get_access_token(SHOP)
        before = provider.cache.entries[SHOP]

        clock.advance(3590)
        shopify.token_handler = lambda request: httpx.Response(401, json={"error": "invalid_client"})
        with pytest.raises(CredentialError, match="401"):
            await provider.get_access_token(SHOP)
        assert provider.cache.entries[SHOP] is before

        shopify.token_handler = shopify.issue_token
        assert await provider.get_access_token(SHOP) == "shpat_issued_token_0002"

    @pytest.mark.asyncio
    async def test_network_error(self, shopify, clock):
        def boom(request):
            raise httpx.ConnectError("connection refused", request=request)

        shopify.token_handler = boom
        provider = client_credentials_provider(shopify, clock)
        with pytest.raises(CredentialError):
            await provider.get_access_token(SHOP)
        assert SHOP not in provider.cache.entries

    @pytest.mark.asyncio
    async def test_body_without_access_token(self, shopify, clock):
        shopify.token_handler = lambda request: httpx.Response(200, json={"expires_in": 10})
        provider = client_credentials_provider(shopify, clock)
        with pytest.raises(CredentialError, match="access_token"):
            await provider.get_access_token(SHOP)

    def test_single_tenant(self, shopify, clock):
        assert client_credentials_provider(shopify, clock).single_tenant


class TestTokenExchangeProvider:
    """Tests for the token exchange grant."""

    @pytest.mark.asyncio
    async def test_exchanges_every_call(self, shopify):
        provider = TokenExchangeProvider(CLIENT_ID, SECRET, transport=shopify.transport)
        first = await provider.get_access_token(SHOP, session_token="session-jwt")
        second = await provider.get_access_token(SHOP, session_token="session-jwt")

        assert first != second
        assert len(shopify.token_requests) == 2
        assert shopify.token_requests[0] == {
            "client_id": CLIENT_ID,
            "client_secret": SECRET,
            "grant_type": TOKEN_EXCHANGE_GRANT,
            "subject_token": "session-jwt",
            "subject_token_type": ID_TOKEN_TYPE,
            "requested_token_type": OFFLINE_ACCESS_TOKEN_TYPE,
        }

    @pytest.mark.asyncio
    async def test_requires_session_token(self, shopify):
        provider = TokenExchangeProvider(CLIENT_ID, SECRET, transport=shopify.transport)
        with pytest.raises(CredentialError):
            await provider.get_access_token(SHOP)
        assert shopify.requests == []

    @pytest.mark.asyncio
    async def test_upstream_rejection(self, shopify):
        shopify.token_handler = lambda request: httpx.Response(400, json={"error": "invalid_subject_token"})
        provider = TokenExchangeProvider(CLIENT_ID, SECRET, transport=shopify.transport)
        with pytest.raises(CredentialError, match="400"):
            await provider.get_access_token(SHOP, session_token="session-jwt")

    def test_multi_tenant(self):
        assert not TokenExchangeProvider(CLIENT_ID, SECRET).single_tenant


class TestStaticAndSessionProviders:
    """Tests for the static token and stored session providers."""

    @pytest.mark.asyncio
    async def test_static_token(self):
        provider = StaticTokenProvider("shpat_static")
        assert await provider.get_access_token(SHOP) == "shpat_static"
        assert provider.single_tenant

    @pytest.mark.asyncio
    async def test_session_lookup(self):
        store = InMemorySessionStore()
        store.add(ShopSession(id=f"offline_{SHOP}", shop=SHOP, access_token="shpat_offline"))
        provider = SessionStorageProvider(store)
        assert await provider.get_access_token(SHOP) == "shpat_offline"

    @pytest.mark.asyncio
    async def test_session_missing(self):
        provider = SessionStorageProvider(InMemorySessionStore())
        with pytest.raises(SessionNotFoundError):
            await provider.get_access_token(SHOP)


class TestCredentialFactory:
    """Provider selection follows configuration, once, at startup."""

    def test_client_credentials_by_default(self):
        provider = CredentialFactory.create_provider(make_settings())
        assert isinstance(provider, ClientCredentialsProvider)

    def test_static_when_token_configured(self):
        provider = CredentialFactory.create_provider(make_settings(SHOPIFY_ACCESS_TOKEN="shpat_static"))
        assert isinstance(provider, StaticTokenProvider)

    def test_session_storage_when_db_configured(self, tmp_path):
        db_path = tmp_path / "sessions.sqlite"
        db_path.touch()
        settings = make_settings(SHOPIFY_SHOP=None, SESSION_DB_PATH=str(db_path))
        provider = CredentialFactory.create_provider(settings)
        assert isinstance(provider, SessionStorageProvider)
        assert isinstance(provider.store, SqliteSessionStore)

    def test_explicit_token_exchange(self):
        settings = make_settings(SHOPIFY_SHOP=None, AUTH_STRATEGY="token_exchange")
        provider = CredentialFactory.create_provider(settings)
        assert isinstance(provider, TokenExchangeProvider)
        assert provider.strategy == AuthStrategy.TOKEN_EXCHANGE
