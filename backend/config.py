"""Centralized configuration — all env vars in one place."""

import os


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        self.cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
        self.git_sha: str = os.getenv("GIT_SHA", "unknown")
        self.environment: str = os.getenv("ENVIRONMENT", "local")
        self.cache_ttl_seconds: int = int(os.getenv("CACHE_TTL_SECONDS", "600"))

        # Patreon creator API
        self.patreon_client_id: str | None = os.getenv("PATREON_CLIENT_ID")
        self.patreon_client_secret: str | None = os.getenv("PATREON_CLIENT_SECRET")
        self.patreon_access_token: str | None = os.getenv("PATREON_CREATOR_ACCESS_TOKEN")
        self.patreon_refresh_token: str | None = os.getenv("PATREON_CREATOR_REFRESH_TOKEN")
        self.patreon_campaign_id: str | None = os.getenv("PATREON_CAMPAIGN_ID")

        # Discord application
        self.discord_token: str | None = os.getenv("DISCORD_TOKEN")

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cache_ttl_millis(self) -> int:
        return self.cache_ttl_seconds * 1000

    def validate(self) -> list[str]:
        """Return list of missing env vars the upstream proxies need."""
        return [var for var, attr in _REQUIRED.items() if not getattr(self, attr)]


# Env var name -> Settings attribute name
_REQUIRED = {
    "PATREON_CLIENT_ID": "patreon_client_id",
    "PATREON_CLIENT_SECRET": "patreon_client_secret",
    "PATREON_CREATOR_ACCESS_TOKEN": "patreon_access_token",
    "PATREON_CREATOR_REFRESH_TOKEN": "patreon_refresh_token",
    "PATREON_CAMPAIGN_ID": "patreon_campaign_id",
    "DISCORD_TOKEN": "discord_token",
}

settings = Settings()
