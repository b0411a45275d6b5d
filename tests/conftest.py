import httpx
import pytest

from oddsboard.core.settings import Settings

BASE_URL = "https://odds.example.test/webapi"


@pytest.fixture
def make_settings():
    def _make(**overrides):
        values = {
            "base_url": BASE_URL,
            "user_agent": "oddsboard-tests/1.0",
            "request_timeout": 5.0,
            "max_retries": 2,
            "page_no": 1,
            "board_rate_limit_ms": 0,
            "detail_rate_limit_ms": 0,
            "board_cache_ttl": 300,
            "detail_cache_ttl": 600,
            "allow_synthetic_odds": False,
            "require_1x2_odds": True,
            "poll_interval": 300,
        }
        values.update(overrides)
        return Settings.validate(values)
    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings()


class FakeTime:
    """Clock plus async sleep that advances it instead of waiting."""

    def __init__(self, now: float = 1000.0):
        self.now = now
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def fake_time():
    return FakeTime()


def mock_client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))
