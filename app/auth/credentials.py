"""
Credential Provider Implementations
Static token, client credentials grant, token exchange grant and stored sessions
"""
from typing import Dict, Optional
import logging

import httpx

from app.auth.interface import CredentialError, CredentialProvider
from app.auth.session_storage import SessionStore
from app.config import AuthStrategy
from app.utils.shop import mask_token
from app.utils.token_cache import TokenCache

logger = logging.getLogger(__name__)

TOKEN_EXCHANGE_GRANT = "urn:ietf:params:oauth:grant-type:token-exchange"
ID_TOKEN_TYPE = "urn:ietf:params:oauth:token-type:id_token"
OFFLINE_ACCESS_TOKEN_TYPE = "urn:shopify:params:oauth:token-type:offline-access-token"

class SessionNotFoundError(CredentialError):
    """No stored session for the shop; the merchant has to install the app first"""

def token_endpoint(shop: str) -> str:
    return f"https://{shop}/admin/oauth/access_token"

class StaticTokenProvider(CredentialProvider):
    """Custom app token configured up front; never expires"""

    strategy = AuthStrategy.STATIC

    def __init__(self, access_token: str):
        self.access_token = access_token

    async def get_access_token(self, shop: str, session_token: Optional[str] = None) -> str:
        return self.access_token

    @property
    def single_tenant(self) -> bool:
        return True

class _OAuthGrantProvider(CredentialProvider):
    """Shared plumbing for grants posted to the shop's token endpoint"""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self.transport = transport

    async def _request_token(self, shop: str, form: Dict[str, str]) -> Dict:
        """
        POST a grant to the shop's token endpoint

        Returns:
            Parsed JSON body containing at least access_token

        Raises:
            CredentialError on network failure, non-2xx status, or a body
            without an access token
        """
        payload = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            **form,
        }
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(
                    token_endpoint(shop),
                    data=payload,
                    headers={"Accept": "application/json"},
                )
        except httpx.HTTPError as e:
            raise CredentialError(f"Token request to {shop} failed: {e}") from e

        if not response.is_success:
            raise CredentialError(
                f"Token request failed ({response.status_code}): {response.text[:200]}"
            )

        try:
            data = response.json()
        except ValueError as e:
            raise CredentialError("Token response was not JSON") from e

        if not isinstance(data, dict) or not data.get("access_token"):
            raise CredentialError("Token response did not include access_token")
        return data

class ClientCredentialsProvider(_OAuthGrantProvider):
    """
    Client credentials grant, cached per shop

    A cached token is reused until it enters the refresh margin. Two requests
    racing past an expired entry may both fetch a new token; the later write
    wins and both tokens are valid.
    """

    strategy = AuthStrategy.CLIENT_CREDENTIALS

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        cache: Optional[TokenCache] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(client_id, client_secret, timeout=timeout, transport=transport)
        self.cache = cache if cache is not None else TokenCache()

    @property
    def single_tenant(self) -> bool:
        return True

    async def get_access_token(self, shop: str, session_token: Optional[str] = None) -> str:
        cached = self.cache.get(shop)
        if cached:
            return cached

        # On failure the old entry stays as it was
        data = await self._request_token(shop, {"grant_type": "client_credentials"})
        entry = self.cache.set(shop, data["access_token"], data.get("expires_in"))
        logger.info(
            "Acquired client credentials token %s for %s (expires_at=%s)",
            mask_token(entry.access_token), shop, entry.expires_at,
        )
        return entry.access_token

class TokenExchangeProvider(_OAuthGrantProvider):
    """Exchanges the caller's session token for an offline access token on every call"""

    strategy = AuthStrategy.TOKEN_EXCHANGE

    async def get_access_token(self, shop: str, session_token: Optional[str] = None) -> str:
        if not session_token:
            raise CredentialError("Token exchange requires the caller's session token")
        data = await self._request_token(shop, {
            "grant_type": TOKEN_EXCHANGE_GRANT,
            "subject_token": session_token,
            "subject_token_type": ID_TOKEN_TYPE,
            "requested_token_type": OFFLINE_ACCESS_TOKEN_TYPE,
        })
        logger.debug("Exchanged session token for %s -> %s", shop, mask_token(data["access_token"]))
        return data["access_token"]

class SessionStorageProvider(CredentialProvider):
    """Looks up the offline session stored by the OAuth install flow"""

    strategy = AuthStrategy.SESSION_STORAGE

    def __init__(self, store: SessionStore):
        self.store = store

    async def get_access_token(self, shop: str, session_token: Optional[str] = None) -> str:
        session = await self.store.find_for_shop(shop)
        if session is None:
            raise SessionNotFoundError(f"No session found for {shop}")
        return session.access_token
