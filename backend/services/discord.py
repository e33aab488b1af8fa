"""Discord application client — approximate server count and legal URLs.

Uses the bot token against the application self-info endpoint. Results are
held in a CacheAsideGuard so page loads don't hit Discord every time.
"""

import logging
from dataclasses import dataclass

import httpx

from errors import UpstreamError, UpstreamHTTPError
from services.cache import DEFAULT_WINDOW_MILLIS, CacheAsideGuard, wall_clock_millis

logger = logging.getLogger(__name__)

DISCORD_API_BASE = "https://discord.com/api/v10"


@dataclass(frozen=True)
class ServerCount:
    server_count: int | None = None
    terms_url: str | None = None
    privacy_url: str | None = None

    def to_dict(self) -> dict:
        return {
            "serverCount": self.server_count,
            "termsUrl": self.terms_url,
            "privacyUrl": self.privacy_url,
        }


async def fetch_application_info(
    bot_token: str | None, transport: httpx.AsyncBaseTransport | None = None
) -> ServerCount:
    """Fetch guild count and legal URLs for the bot's own application."""
    try:
        async with httpx.AsyncClient(transport=transport) as client:
            resp = await client.get(
                f"{DISCORD_API_BASE}/applications/@me",
                headers={"Authorization": f"Bot {bot_token}"},
            )
    except httpx.HTTPError as e:
        logger.error("Discord request failed: %s", e)
        raise UpstreamError(str(e)) from e

    if not resp.is_success:
        logger.warning("Discord returned HTTP %d", resp.status_code)
        raise UpstreamHTTPError("Discord", resp.status_code)

    try:
        data = resp.json()
    except ValueError as e:
        raise UpstreamError(f"Discord API returned invalid JSON: {e}") from e
    if not isinstance(data, dict):
        data = {}

    return ServerCount(
        server_count=data.get("approximate_guild_count"),
        terms_url=data.get("terms_of_service_url"),
        privacy_url=data.get("privacy_policy_url"),
    )


class ServerCountProxy:
    """Cached view of the Discord application's server count."""

    def __init__(
        self,
        bot_token: str | None,
        window_millis: int = DEFAULT_WINDOW_MILLIS,
        clock=wall_clock_millis,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._bot_token = bot_token
        self._transport = transport
        self.guard: CacheAsideGuard[ServerCount] = CacheAsideGuard(
            self._fetch, window_millis=window_millis, clock=clock, name="discord"
        )

    async def _fetch(self) -> ServerCount:
        return await fetch_application_info(self._bot_token, transport=self._transport)

    async def handle_request(self) -> dict:
        result = await self.guard.get()
        return result.to_dict()
