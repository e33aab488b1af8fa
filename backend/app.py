"""FastAPI application entry point for the portfolio API."""

import logging
import sys

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from config import Settings, settings as default_settings
from errors import register_error_handlers
from services.cache import wall_clock_millis
from services.discord import ServerCountProxy
from services.patreon import PatreonCreatorClient, PatronCountProxy

# Structured logging: JSON for production, human-readable for local
if default_settings.is_production:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}',
        stream=sys.stdout,
    )
else:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

logger = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    patron_proxy: PatronCountProxy | None = None,
    server_proxy: ServerCountProxy | None = None,
    clock=wall_clock_millis,
) -> FastAPI:
    settings = settings or default_settings
    app = FastAPI(title="Portfolio API", version="1.0.0")

    # Proxies own their caches; tests inject their own
    if patron_proxy is None:
        patron_proxy = PatronCountProxy(
            PatreonCreatorClient(
                client_id=settings.patreon_client_id,
                client_secret=settings.patreon_client_secret,
                access_token=settings.patreon_access_token,
                refresh_token=settings.patreon_refresh_token,
            ),
            campaign_id=settings.patreon_campaign_id,
            window_millis=settings.cache_ttl_millis,
            clock=clock,
        )
    if server_proxy is None:
        server_proxy = ServerCountProxy(
            settings.discord_token,
            window_millis=settings.cache_ttl_millis,
            clock=clock,
        )
    app.state.settings = settings
    app.state.clock = clock
    app.state.patron_proxy = patron_proxy
    app.state.server_proxy = server_proxy

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET"],
        allow_headers=["*"],
    )

    # Security headers
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    # Centralized error handlers
    register_error_handlers(app)

    from routes.health import router as health_router
    from routes.patreon import router as patreon_router
    from routes.servercount import router as servercount_router

    app.include_router(health_router)
    app.include_router(patreon_router)
    app.include_router(servercount_router)

    @app.on_event("startup")
    async def _validate_config() -> None:
        missing = settings.validate()
        if missing:
            logger.warning("Missing env vars (upstream calls will fail): %s", ", ".join(missing))

    return app


app = create_app()
