"""
Error Types
Every per-request failure carries an HTTP status and a machine-readable code
"""
from enum import Enum
from typing import Dict, List, Optional

class ConfigError(Exception):
    """Startup configuration is incomplete; the process must not serve requests"""

    def __init__(self, strategy: str, missing: List[str], detail: Optional[str] = None):
        self.strategy = strategy
        self.missing = missing
        if detail is None:
            detail = f"Missing required env vars for auth strategy '{strategy}': {', '.join(missing)}"
        super().__init__(detail)

class BffError(Exception):
    """Base class for errors rendered as a JSON response"""
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str, code: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code

    def to_body(self) -> Dict:
        return {"error": self.message, "code": self.code}

class AuthErrorKind(str, Enum):
    """Reasons an inbound request is rejected before reaching Shopify"""
    MISSING_AUTH = "missing_auth"
    INVALID_TOKEN = "invalid_token"
    NO_SHOP = "no_shop"
    SHOP_MISMATCH = "shop_mismatch"
    SESSION_NOT_FOUND = "session_not_found"
    EXCHANGE_FAILED = "exchange_failed"
    TOKEN_FAILED = "token_failed"

# Failures to obtain a credential are the backend's problem, not the caller's
_AUTH_STATUS = {
    AuthErrorKind.EXCHANGE_FAILED: 503,
    AuthErrorKind.TOKEN_FAILED: 503,
}

class AuthError(BffError):
    """Request could not be authorized"""

    def __init__(self, kind: AuthErrorKind, message: str):
        super().__init__(message, code=kind.value, status_code=_AUTH_STATUS.get(kind, 401))
        self.kind = kind

class ValidationError(BffError):
    """Request is missing or has malformed parameters"""
    status_code = 400
    code = "validation_error"

class UpstreamApplicationError(BffError):
    """Shopify accepted the call but rejected it with userErrors"""
    status_code = 422
    code = "user_errors"

    def __init__(self, errors: List[Dict], message: str = "Shopify rejected the request"):
        super().__init__(message)
        self.errors = errors

    def to_body(self) -> Dict:
        return {"errors": self.errors, "code": self.code}

class UpstreamTransportError(BffError):
    """Shopify could not be reached, answered non-2xx, or returned top-level errors"""
    status_code = 500
    code = "upstream_error"
