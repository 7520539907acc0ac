"""
Draft Orders BFF - FastAPI Backend
Lets Shopify UI extensions complete, delete and list draft orders through the Admin API
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as SettingsValidationError
from typing import Optional
import logging
import sys

import httpx

from app.api.cors import install_cors
from app.api.draft_orders import router as draft_orders_router
from app.auth.authorizer import RequestAuthorizer
from app.auth.factory import CredentialFactory
from app.auth.session_storage import SessionStore
from app.commerce.draft_orders import DraftOrderService
from app.config import Settings, load_settings
from app.errors import BffError, ConfigError
from app.shopify.client import AdminGraphQLClient

logger = logging.getLogger(__name__)

def create_app(
    settings: Settings,
    upstream_transport: Optional[httpx.AsyncBaseTransport] = None,
    session_store: Optional[SessionStore] = None,
) -> FastAPI:
    """
    Build the application

    Everything with state (credential provider and its token cache, the
    authorizer, the Admin API client) is created here once and shared by all
    requests through app.state.

    Args:
        settings: Application settings
        upstream_transport: Optional httpx transport for every call to Shopify
        session_store: Overrides the sqlite store for the session_storage strategy

    Raises:
        ConfigError if settings are incomplete for the selected strategy
    """
    strategy = settings.check()

    app = FastAPI(
        title=settings.APP_NAME,
        description="Backend for Shopify UI extensions managing draft orders",
        version="1.0.0",
    )

    provider = CredentialFactory.create_provider(
        settings, strategy, transport=upstream_transport, session_store=session_store
    )
    app.state.settings = settings
    app.state.authorizer = RequestAuthorizer(
        provider,
        secret=settings.SHOPIFY_CLIENT_SECRET,
        shop_domain=settings.shop_domain,
        leeway=settings.JWT_LEEWAY_SECONDS,
    )
    app.state.draft_orders = DraftOrderService(
        AdminGraphQLClient(
            api_version=settings.SHOPIFY_API_VERSION,
            timeout=settings.SHOPIFY_HTTP_TIMEOUT,
            transport=upstream_transport,
        )
    )

    install_cors(app, settings.CORS_ALLOWED_SUFFIXES)

    @app.exception_handler(BffError)
    async def bff_error_handler(request: Request, exc: BffError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    app.include_router(draft_orders_router)

    @app.get("/")
    async def root():
        """Liveness check"""
        return {"status": "ok"}

    logger.info(
        "%s ready (auth strategy: %s, shop: %s)",
        settings.APP_NAME, strategy.value, settings.shop_domain or "any",
    )
    return app

def run() -> None:
    """Console entry point: validate config, then serve"""
    import uvicorn

    log_format = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    try:
        settings = load_settings()
    except SettingsValidationError as e:
        logging.basicConfig(level=logging.INFO, format=log_format)
        logger.error("Invalid configuration: %s", e)
        sys.exit(1)

    logging.basicConfig(level=settings.LOG_LEVEL.upper(), format=log_format)
    try:
        app = create_app(settings)
    except ConfigError as e:
        logger.error("%s", e)
        logger.error("Set them in the environment or in a .env file next to the app.")
        sys.exit(1)

    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)

if __name__ == "__main__":
    run()
