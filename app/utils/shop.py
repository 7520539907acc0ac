"""
Shop identity helpers
"""
from typing import Optional

SHOP_SUFFIX = ".myshopify.com"

def normalize_shop(raw) -> str:
    """
    Normalize a shop handle or domain to "<handle>.myshopify.com"

    Returns "" for empty or non-string input
    """
    if not raw or not isinstance(raw, str):
        return ""
    shop = raw.strip().lower().rstrip("/")
    if not shop:
        return ""
    # Host segment only, so the result normalizes to itself
    host = shop.split("/")[0]
    if SHOP_SUFFIX in host or not host:
        return host
    return host + SHOP_SUFFIX

def shop_from_dest(dest) -> str:
    """Shop domain from a session token "dest" claim such as https://foo.myshopify.com"""
    if not dest:
        return ""
    host = str(dest).strip()
    for scheme in ("https://", "http://"):
        if host.lower().startswith(scheme):
            host = host[len(scheme):]
            break
    return normalize_shop(host.split("/")[0])

def shop_handle(shop: str) -> str:
    """foo.myshopify.com -> foo"""
    if shop.endswith(SHOP_SUFFIX):
        return shop[: -len(SHOP_SUFFIX)]
    return shop

def mask_token(token: Optional[str]) -> str:
    """Redacted form of a credential, safe to log"""
    if not token:
        return "<none>"
    if len(token) <= 10:
        return "***"
    return f"{token[:6]}...{token[-4:]}"
