"""
Shared pytest fixtures for the draft orders BFF test suite.

Shopify is never contacted: every outbound call goes through FakeShopify,
an httpx.MockTransport that answers the token endpoint and the Admin GraphQL
endpoint.
"""

import json
import time
from typing import Callable, Dict, List, Optional
from urllib.parse import parse_qs

import httpx
import jwt
import pytest

from app.config import Settings

SECRET = "test-client-secret-0123456789abcdef0123456789"
CLIENT_ID = "test-client-id"
SHOP = "foo.myshopify.com"

ENV_VARS = [
    "SHOPIFY_SHOP", "SHOP", "SHOPIFY_CLIENT_ID", "SHOPIFY_API_KEY",
    "SHOPIFY_CLIENT_SECRET", "SHOPIFY_API_SECRET", "SHOPIFY_ACCESS_TOKEN",
    "SESSION_DB_PATH", "AUTH_STRATEGY", "SHOPIFY_API_VERSION", "PORT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep the developer's environment out of Settings()."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def make_settings(**overrides) -> Settings:
    values = {
        "SHOPIFY_SHOP": "foo",
        "SHOPIFY_CLIENT_ID": CLIENT_ID,
        "SHOPIFY_CLIENT_SECRET": SECRET,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def make_session_token(
    dest: Optional[str] = "https://foo.myshopify.com",
    secret: str = SECRET,
    claim: str = "dest",
    expires_in: int = 60,
    **extra,
) -> str:
    now = int(time.time())
    payload = {
        "iss": "https://foo.myshopify.com/admin",
        "aud": CLIENT_ID,
        "sub": "42",
        "iat": now,
        "nbf": now,
        "exp": now + expires_in,
        **extra,
    }
    if dest is not None:
        payload[claim] = dest
    return jwt.encode(payload, secret, algorithm="HS256")


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


class FakeShopify:
    """Scriptable stand-in for a shop's token and GraphQL endpoints."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.token_requests: List[Dict[str, str]] = []
        self.graphql_requests: List[Dict] = []
        self.token_handler: Callable[[httpx.Request], httpx.Response] = self.issue_token
        self.graphql_handler: Callable[[httpx.Request], httpx.Response] = (
            lambda request: httpx.Response(200, json={"data": {}})
        )
        self.expires_in: Optional[int] = 3600
        self._issued = 0

    def issue_token(self, request: httpx.Request) -> httpx.Response:
        self._issued += 1
        body = {"access_token": f"shpat_issued_token_{self._issued:04d}", "scope": "write_draft_orders"}
        if self.expires_in is not None:
            body["expires_in"] = self.expires_in
        return httpx.Response(200, json=body)

    def respond_graphql(self, data: Optional[Dict] = None, status: int = 200, **extra) -> None:
        body = dict(extra)
        if data is not None:
            body["data"] = data
        self.graphql_handler = lambda request: httpx.Response(status, json=body)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.path == "/admin/oauth/access_token":
            self.token_requests.append(
                {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
            )
            return self.token_handler(request)
        if request.url.path.endswith("/graphql.json"):
            self.graphql_requests.append(json.loads(request.content))
            return self.graphql_handler(request)
        return httpx.Response(404, text="not found")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def shopify() -> FakeShopify:
    return FakeShopify()


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
