"""Shared fixtures: settings, a fake Reddit upstream, and fake cache stores."""

import httpx
import pytest

from config import Settings
from errors import CacheError
from services.cache import TTLCache


class FakeReddit:
    """httpx MockTransport handler that records requests and serves canned responses."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.routes: dict[tuple[str, str], tuple] = {}

    def add(self, method: str, path: str, status_code: int = 200, error: Exception | None = None, **kwargs) -> None:
        self.routes[(method, path)] = (status_code, error, kwargs)

    def calls_to(self, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status_code, error, kwargs = self.routes.get(
            (request.method, request.url.path),
            (200, None, {"json": {"kind": "Listing", "data": {"children": []}}}),
        )
        if error is not None:
            raise error
        return httpx.Response(status_code, **kwargs)


class FailingCache:
    def __init__(self):
        self.get_calls = 0
        self.set_calls = 0

    async def get(self, key):
        self.get_calls += 1
        raise CacheError(f"GET {key} failed: connection refused")

    async def set(self, key, value, ttl_seconds):
        self.set_calls += 1
        raise CacheError(f"SET {key} failed: connection refused")

    async def ping(self):
        raise CacheError("PING failed: connection refused")

    async def close(self):
        pass


class RecordingCache(TTLCache):
    def __init__(self):
        super().__init__()
        self.get_calls = 0
        self.set_calls: list[tuple[str, object, int]] = []

    async def get(self, key):
        self.get_calls += 1
        return await super().get(key)

    async def set(self, key, value, ttl_seconds=60):
        self.set_calls.append((key, value, ttl_seconds))
        await super().set(key, value, ttl_seconds)


@pytest.fixture
def settings() -> Settings:
    s = Settings()
    s.reddit_client_id = "client-id"
    s.reddit_client_secret = "client-secret"
    s.reddit_redirect_uri = "http://localhost:3001/api/auth/reddit/callback"
    s.reddit_public_base = "https://www.reddit.com"
    s.reddit_oauth_base = "https://oauth.reddit.com"
    s.user_agent_public = "public-agent"
    s.user_agent_oauth_prefix = "oauth-agent"
    s.cache_ttl_seconds = 300
    return s


@pytest.fixture
def fake_reddit() -> FakeReddit:
    return FakeReddit()


@pytest.fixture
def http_client(fake_reddit) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_reddit))


@pytest.fixture
def recording_cache() -> RecordingCache:
    return RecordingCache()


@pytest.fixture
def failing_cache() -> FailingCache:
    return FailingCache()
