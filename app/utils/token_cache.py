"""
Access Token Cache
In-memory, one slot per shop, with a refresh margin before nominal expiry
"""
from dataclasses import dataclass
from typing import Callable, Dict, Optional
import logging
import time

from app.utils.shop import mask_token

logger = logging.getLogger(__name__)

# Tokens are refreshed this many seconds before they actually expire
REFRESH_MARGIN_SECONDS = 60

@dataclass(frozen=True)
class CachedToken:
    access_token: str
    expires_at: Optional[float] = None  # epoch seconds; None never expires

    def __repr__(self) -> str:
        return f"CachedToken(access_token={mask_token(self.access_token)}, expires_at={self.expires_at})"

class TokenCache:
    """
    Holds at most one access token per shop

    Entries are never removed speculatively: a failed refresh leaves the
    previous entry in place, and get() simply stops returning it once it is
    inside the refresh margin.
    """

    def __init__(
        self,
        margin_seconds: int = REFRESH_MARGIN_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        self.entries: Dict[str, CachedToken] = {}
        self.margin_seconds = margin_seconds
        self.clock = clock

    def get(self, shop: str) -> Optional[str]:
        """Return the cached token if it is still usable"""
        entry = self.entries.get(shop)
        if entry is None:
            return None
        if entry.expires_at is not None and self.clock() >= entry.expires_at - self.margin_seconds:
            logger.debug("Cached token for %s is due for refresh", shop)
            return None
        return entry.access_token

    def set(self, shop: str, access_token: str, expires_in: Optional[float] = None) -> CachedToken:
        """Store a freshly acquired token; expires_in is relative, in seconds"""
        expires_at = None
        if expires_in is not None:
            expires_at = self.clock() + float(expires_in)
        entry = CachedToken(access_token=access_token, expires_at=expires_at)
        self.entries[shop] = entry
        return entry
