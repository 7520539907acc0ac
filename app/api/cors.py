"""
CORS for Shopify-hosted extensions
Origins are reflected only for Shopify's own domains; preflights never reach auth
"""
from typing import Iterable, Optional
from urllib.parse import urlsplit

from fastapi import FastAPI, Request
from fastapi.responses import Response

ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
ALLOW_HEADERS = "Authorization, Content-Type"
MAX_AGE = "86400"

def is_trusted_origin(origin: Optional[str], suffixes: Iterable[str]) -> bool:
    """https origin whose host is one of the suffixes or a subdomain of one"""
    if not origin:
        return False
    try:
        parts = urlsplit(origin)
    except ValueError:
        return False
    host = (parts.hostname or "").lower()
    if parts.scheme != "https" or not host:
        return False
    for suffix in suffixes:
        suffix = suffix.lower().lstrip(".")
        if host == suffix or host.endswith("." + suffix):
            return True
    return False

def install_cors(app: FastAPI, suffixes: Iterable[str]) -> None:
    """Register the CORS middleware on the app"""
    suffixes = tuple(suffixes)

    @app.middleware("http")
    async def shopify_cors(request: Request, call_next):
        if request.method == "OPTIONS":
            response = Response(status_code=204)
        else:
            response = await call_next(request)

        origin = request.headers.get("Origin")
        if is_trusted_origin(origin, suffixes):
            response.headers["Access-Control-Allow-Origin"] = origin
            response.headers["Vary"] = "Origin"
        response.headers["Access-Control-Allow-Methods"] = ALLOW_METHODS
        response.headers["Access-Control-Allow-Headers"] = ALLOW_HEADERS
        response.headers["Access-Control-Max-Age"] = MAX_AGE
        return response
