"""
Session Token Verification
Checks the HS256 signature of the token an extension sends as
"Authorization: Bearer <token>" and returns its claims
"""
from typing import Any, Dict, Optional

import jwt

ALGORITHMS = ["HS256"]

class InvalidTokenError(Exception):
    """Token is malformed, wrongly signed, or expired"""

def verify_session_token(token: str, secret, leeway: int = 0) -> Dict[str, Any]:
    """
    Verify a session token with the app secret

    Args:
        token: Raw JWT
        secret: App client secret (str or bytes)
        leeway: Allowed clock skew in seconds for exp/nbf

    Returns:
        Decoded claims, unmodified

    Raises:
        InvalidTokenError with a human readable detail
    """
    if not token:
        raise InvalidTokenError("Empty token")
    if isinstance(secret, str):
        secret = secret.encode("utf-8")
    try:
        return jwt.decode(
            token,
            secret,
            algorithms=ALGORITHMS,
            leeway=leeway,
            # Shop identity is checked by the caller, audience is not used
            options={"verify_aud": False},
        )
    except jwt.ExpiredSignatureError as e:
        raise InvalidTokenError("Session token expired") from e
    except jwt.InvalidTokenError as e:
        raise InvalidTokenError(f"Session token verification failed: {e}") from e

def destination_of(claims: Dict[str, Any]) -> Optional[str]:
    """The issuing shop URL; older tokens carry it as "des" instead of "dest" """
    return claims.get("dest") or claims.get("des")
