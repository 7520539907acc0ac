"""
Shop Session Storage
Read-only access to offline sessions written by the app's OAuth install flow
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional
import asyncio
import logging
import sqlite3
import time

from app.auth.interface import CredentialError
from app.utils.shop import mask_token, shop_handle

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class ShopSession:
    id: str
    shop: str
    access_token: str
    scope: Optional[str] = None
    expires: Optional[float] = None  # epoch seconds

    def __repr__(self) -> str:
        return f"ShopSession(id={self.id!r}, shop={self.shop!r}, access_token={mask_token(self.access_token)})"

    def is_usable(self, now: Optional[float] = None) -> bool:
        if not self.access_token:
            return False
        if self.expires is None:
            return True
        return (now if now is not None else time.time()) < self.expires

def session_id_candidates(shop: str) -> List[str]:
    """
    Session ids to try for a shop, first match wins

    offline_<shop> is what the install flow writes today; the other two are
    ids written by earlier releases (bare handle, and the shop domain alone).
    """
    return [
        f"offline_{shop}",
        f"offline_{shop_handle(shop)}",
        shop,
    ]

class SessionStore(ABC):
    """Abstract key-value store of shop sessions"""

    @abstractmethod
    async def load(self, session_id: str) -> Optional[ShopSession]:
        """Return the session stored under session_id, or None"""
        pass

    async def find_for_shop(self, shop: str) -> Optional[ShopSession]:
        """Try each candidate id in order and return the first usable session"""
        for session_id in session_id_candidates(shop):
            session = await self.load(session_id)
            if session is not None and session.is_usable():
                logger.debug("Found session %s for %s", session_id, shop)
                return session
        return None

class InMemorySessionStore(SessionStore):
    """Dict backed store for local development and tests"""

    def __init__(self, sessions: Optional[Dict[str, ShopSession]] = None):
        self.sessions: Dict[str, ShopSession] = dict(sessions or {})

    def add(self, session: ShopSession) -> None:
        self.sessions[session.id] = session

    async def load(self, session_id: str) -> Optional[ShopSession]:
        return self.sessions.get(session_id)

class SqliteSessionStore(SessionStore):
    """
    Reads the shopify_sessions table used by Shopify's sqlite session storage

    Columns read: id, shop, accessToken, scope, expires. expires is stored in
    seconds since epoch; rows without an access token are ignored.
    """

    TABLE = "shopify_sessions"

    def __init__(self, db_path: str):
        self.db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        # mode=ro never creates the file and never writes to it
        uri = Path(self.db_path).resolve().as_uri() + "?mode=ro"
        return sqlite3.connect(uri, uri=True)

    def _load_sync(self, session_id: str) -> Optional[ShopSession]:
        try:
            conn = self._connect()
            try:
                conn.row_factory = sqlite3.Row
                row = conn.execute(
                    f"SELECT id, shop, accessToken, scope, expires FROM {self.TABLE} WHERE id = ?",
                    (session_id,),
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.error("Reading session %s from %s failed: %s", session_id, self.db_path, e)
            raise CredentialError(f"Session storage unavailable: {e}") from e

        if row is None:
            return None
        return ShopSession(
            id=row["id"],
            shop=row["shop"],
            access_token=row["accessToken"] or "",
            scope=row["scope"],
            expires=float(row["expires"]) if row["expires"] is not None else None,
        )

    async def load(self, session_id: str) -> Optional[ShopSession]:
        # sqlite3 blocks, keep it off the event loop
        return await asyncio.to_thread(self._load_sync, session_id)
