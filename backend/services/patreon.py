"""Patreon creator API client — patron count for a single campaign.

Talks to the Patreon API v2 directly over httpx:

    GET https://www.patreon.com/api/oauth2/v2/campaigns/<id>?fields[campaign]=patron_count

Auth:
    Creator access token as Bearer. If only a refresh token is configured,
    initialize() exchanges it for an access token first. Refreshed tokens
    live in memory only; a restart falls back to the env values.
"""

import logging
from dataclasses import dataclass

import httpx

from errors import UpstreamAuthError, UpstreamError, UpstreamHTTPError
from services.cache import DEFAULT_WINDOW_MILLIS, CacheAsideGuard, wall_clock_millis

logger = logging.getLogger(__name__)

PATREON_API_BASE = "https://www.patreon.com/api/oauth2/v2"
PATREON_TOKEN_URL = "https://www.patreon.com/api/oauth2/token"


def _raise_for_status(resp: httpx.Response) -> None:
    if resp.is_success:
        return
    logger.warning("Patreon returned HTTP %d", resp.status_code)
    if resp.status_code in (401, 403):
        raise UpstreamAuthError("Patreon", resp.status_code)
    raise UpstreamHTTPError("Patreon", resp.status_code)


def _json_object(resp: httpx.Response) -> dict:
    try:
        data = resp.json()
    except ValueError as e:
        raise UpstreamError(f"Patreon API returned invalid JSON: {e}") from e
    return data if isinstance(data, dict) else {}


class PatreonCreatorClient:
    def __init__(
        self,
        client_id: str | None,
        client_secret: str | None,
        access_token: str | None,
        refresh_token: str | None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.access_token = access_token
        self.refresh_token = refresh_token
        self._transport = transport

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            async with httpx.AsyncClient(transport=self._transport) as client:
                return await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            logger.error("Patreon request failed: %s", e)
            raise UpstreamError(str(e)) from e

    async def initialize(self) -> None:
        """Make sure we hold an access token, refreshing if we only have a refresh token."""
        if self.access_token or not self.refresh_token:
            return
        await self.refresh_access_token()

    async def refresh_access_token(self) -> None:
        logger.info("Refreshing Patreon creator access token")
        resp = await self._request(
            "POST",
            PATREON_TOKEN_URL,
            data={
                "grant_type": "refresh_token",
                "refresh_token": self.refresh_token or "",
                "client_id": self.client_id or "",
                "client_secret": self.client_secret or "",
            },
        )
        _raise_for_status(resp)
        token = _json_object(resp)
        if not token.get("access_token"):
            raise UpstreamAuthError("Patreon", resp.status_code)
        self.access_token = token["access_token"]
        self.refresh_token = token.get("refresh_token", self.refresh_token)

    async def fetch_campaign(self, campaign_id: str | None, fields: list[str]) -> dict:
        """Return the campaign resource's ``data`` object."""
        resp = await self._request(
            "GET",
            f"{PATREON_API_BASE}/campaigns/{campaign_id or ''}",
            params={"fields[campaign]": ",".join(fields)},
            headers={"Authorization": f"Bearer {self.access_token or ''}"},
        )
        _raise_for_status(resp)
        data = _json_object(resp).get("data")
        return data if isinstance(data, dict) else {}


@dataclass(frozen=True)
class PatronCount:
    patron_count: int | None = None

    def to_dict(self) -> dict:
        return {"patronCount": self.patron_count}


async def fetch_patron_count(client: PatreonCreatorClient, campaign_id: str | None) -> PatronCount:
    await client.initialize()
    campaign = await client.fetch_campaign(campaign_id, ["patron_count"])
    attributes = campaign.get("attributes")
    if not isinstance(attributes, dict):
        attributes = {}
    return PatronCount(patron_count=attributes.get("patron_count"))


class PatronCountProxy:
    """Cached view of a campaign's patron count."""

    def __init__(
        self,
        client: PatreonCreatorClient,
        campaign_id: str | None,
        window_millis: int = DEFAULT_WINDOW_MILLIS,
        clock=wall_clock_millis,
    ):
        self.client = client
        self.campaign_id = campaign_id
        self.guard: CacheAsideGuard[PatronCount] = CacheAsideGuard(
            self._fetch, window_millis=window_millis, clock=clock, name="patreon"
        )

    async def _fetch(self) -> PatronCount:
        return await fetch_patron_count(self.client, self.campaign_id)

    async def handle_request(self) -> dict:
        result = await self.guard.get()
        return result.to_dict()
