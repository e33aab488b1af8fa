"""Custom exceptions and centralized FastAPI error handlers."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class PortfolioAPIError(Exception):
    """Base exception with HTTP status code."""

    def __init__(self, message: str, status_code: int = 500):
        super().__init__(message)
        self.status_code = status_code


class UpstreamError(PortfolioAPIError):
    """Transport-level failure talking to a third-party API."""


class UpstreamHTTPError(UpstreamError):
    def __init__(self, platform: str, upstream_status: int):
        super().__init__(f"{platform} API error: {upstream_status}")
        self.platform = platform
        self.upstream_status = upstream_status


class UpstreamAuthError(UpstreamHTTPError):
    """Upstream rejected our credentials (401/403)."""


def register_error_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers on the FastAPI app."""

    @app.exception_handler(PortfolioAPIError)
    async def handle_portfolio_error(_request: Request, exc: PortfolioAPIError):
        return JSONResponse({"error": str(exc)}, status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        return JSONResponse({"error": str(exc)}, status_code=500)
