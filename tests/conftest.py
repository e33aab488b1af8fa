import httpx
import pytest


class FakeClock:
    """Millisecond clock the tests move by hand."""

    def __init__(self, now: int = 0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, millis: int) -> None:
        self.now += millis


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it served."""

    def __init__(self, handler) -> None:
        self.requests: list[httpx.Request] = []

        def _record(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            return handler(request)

        super().__init__(_record)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def clean_env(monkeypatch):
    for var in (
        "PATREON_CLIENT_ID",
        "PATREON_CLIENT_SECRET",
        "PATREON_CREATOR_ACCESS_TOKEN",
        "PATREON_CREATOR_REFRESH_TOKEN",
        "PATREON_CAMPAIGN_ID",
        "DISCORD_TOKEN",
        "CACHE_TTL_SECONDS",
        "ENVIRONMENT",
        "GIT_SHA",
        "CORS_ORIGINS",
    ):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch
