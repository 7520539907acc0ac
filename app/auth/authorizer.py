"""
Request Authorizer
Turns an Authorization header into the shop and access token a request acts for
"""
from dataclasses import dataclass
from typing import Optional
import logging

from app.auth.credentials import SessionNotFoundError
from app.auth.interface import CredentialError, CredentialProvider
from app.auth.session_token import InvalidTokenError, destination_of, verify_session_token
from app.config import AuthStrategy
from app.errors import AuthError, AuthErrorKind
from app.utils.shop import mask_token, shop_from_dest

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

@dataclass(frozen=True)
class AuthorizedContext:
    shop: str
    access_token: str

    def __repr__(self) -> str:
        return f"AuthorizedContext(shop={self.shop!r}, access_token={mask_token(self.access_token)})"

def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Token from "Bearer <token>", or None when the header is missing or malformed"""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None
    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None

class RequestAuthorizer:
    """
    Verifies the caller's session token and obtains an access token

    Steps run in a fixed order and stop at the first failure:
    bearer header, signature, destination shop, then the strategy specific
    check (configured shop match, stored session, or token exchange).
    """

    def __init__(
        self,
        provider: CredentialProvider,
        secret: str,
        shop_domain: str = "",
        leeway: int = 0,
    ):
        self.provider = provider
        self.secret = secret
        self.shop_domain = shop_domain
        self.leeway = leeway

    async def authorize(self, authorization: Optional[str]) -> AuthorizedContext:
        token = extract_bearer_token(authorization)
        if token is None:
            raise AuthError(AuthErrorKind.MISSING_AUTH, "Missing Authorization header")

        try:
            claims = verify_session_token(token, self.secret, leeway=self.leeway)
        except InvalidTokenError as e:
            logger.warning("Session token rejected: %s", e)
            raise AuthError(AuthErrorKind.INVALID_TOKEN, "Invalid session token") from e

        shop = shop_from_dest(destination_of(claims))
        if not shop:
            raise AuthError(AuthErrorKind.NO_SHOP, "Session token does not name a shop")

        if self.provider.single_tenant and shop != self.shop_domain:
            logger.warning("Token for %s presented to app for %s", shop, self.shop_domain)
            raise AuthError(AuthErrorKind.SHOP_MISMATCH, "Token shop does not match app shop")

        access_token = await self._access_token_for(shop, token)
        return AuthorizedContext(shop=shop, access_token=access_token)

    async def _access_token_for(self, shop: str, session_token: str) -> str:
        try:
            return await self.provider.get_access_token(shop, session_token=session_token)
        except SessionNotFoundError as e:
            logger.info("No stored session for %s", shop)
            raise AuthError(
                AuthErrorKind.SESSION_NOT_FOUND,
                f"No session for {shop}. Install the app on the shop (or re-open it in admin to grant consent) and try again.",
            ) from e
        except CredentialError as e:
            if self.provider.strategy == AuthStrategy.TOKEN_EXCHANGE:
                logger.error("Token exchange for %s failed: %s", shop, e)
                raise AuthError(AuthErrorKind.EXCHANGE_FAILED, "Could not exchange session token") from e
            logger.error("Access token for %s failed: %s", shop, e)
            raise AuthError(AuthErrorKind.TOKEN_FAILED, "Could not get access token") from e
