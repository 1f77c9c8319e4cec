"""Reddit top-listing proxy. Authenticated when the user is signed in, cached otherwise.

Flow per request:

1. Mode selection: a valid (or successfully refreshed) credential means
   authenticated mode against oauth.reddit.com. A failed refresh drops the
   credential and falls back to public mode.
2. ``plan_request`` builds the URL, headers and cache key with no I/O.
3. Public mode only: serve from cache on hit.
4. Fetch upstream; non-2xx and transport failures become error envelopes.
5. Public mode only: cache non-empty payloads for ``cache_ttl_seconds``.

Cache failures are logged and never fail the request.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote

import httpx

from config import Settings
from errors import CacheError, CredentialRefreshError, ProxyError, TransportError, UpstreamError
from services.cache import CacheStore
from services.reddit_oauth import CredentialProvider, CredentialState

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 25


class Mode(str, enum.Enum):
    PUBLIC = "public"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class ProxyRequest:
    subreddit: str
    limit: int = DEFAULT_LIMIT
    after: str = ""

    def __post_init__(self):
        if not self.subreddit:
            raise ValueError("Subreddit name is required.")
        if self.limit <= 0:
            raise ValueError(f"limit must be positive, got {self.limit}")
        if self.after is None:
            object.__setattr__(self, "after", "")


@dataclass(frozen=True)
class RequestPlan:
    mode: Mode
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    cacheable: bool = False
    cache_key: str | None = None


@dataclass
class ProxyResult:
    body: Any
    status_code: int
    credential: CredentialState | None = None


def cache_key(request: ProxyRequest) -> str:
    """Deterministic key for a public listing; empty and absent ``after`` collide.

    Free-text parts are percent-encoded so the ``:`` separators stay unambiguous.
    """
    subreddit = quote(request.subreddit, safe="")
    after = quote(request.after or "", safe="")
    return f"pub_reddit:{subreddit}:l{request.limit}:a{after}"


def listing_url(base: str, request: ProxyRequest) -> str:
    params: dict[str, str | int] = {"raw_json": 1, "t": "all", "limit": request.limit}
    if request.after:
        params["after"] = request.after
    path = f"/r/{quote(request.subreddit, safe='')}/top.json"
    return str(httpx.URL(base.rstrip("/") + path, params=params))


def plan_request(request: ProxyRequest, credential: CredentialState | None, settings: Settings) -> RequestPlan:
    """Decide mode, URL and headers. The credential must already be valid."""
    if credential is not None:
        return RequestPlan(
            mode=Mode.AUTHENTICATED,
            url=listing_url(settings.reddit_oauth_base, request),
            headers={
                "Authorization": f"Bearer {credential.access_token}",
                "User-Agent": f"{settings.user_agent_oauth_prefix} APIRequest /r/{request.subreddit}",
            },
        )
    return RequestPlan(
        mode=Mode.PUBLIC,
        url=listing_url(settings.reddit_public_base, request),
        headers={"User-Agent": settings.user_agent_public},
        cacheable=True,
        cache_key=cache_key(request),
    )


class ProxyHandler:
    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient,
        cache: CacheStore | None = None,
        credentials: CredentialProvider | None = None,
    ):
        self.settings = settings
        self.http_client = http_client
        self.cache = cache
        self.credentials = credentials

    async def resolve_credential(self, credential: CredentialState | None) -> CredentialState | None:
        """Return a usable credential, refreshing once if expired; None means public mode."""
        if credential is None or self.credentials is None:
            return None
        if self.credentials.is_valid(credential):
            return credential
        try:
            return await self.credentials.refresh(credential)
        except CredentialRefreshError as e:
            logger.info("Falling back to public mode: %s", e)
            return None

    async def handle(self, request: ProxyRequest, credential: CredentialState | None = None) -> ProxyResult:
        credential = await self.resolve_credential(credential)
        plan = plan_request(request, credential, self.settings)

        use_cache = plan.cacheable and self.cache is not None
        if use_cache:
            cached = await self._cache_get(plan.cache_key)
            if cached:
                logger.debug("Cache hit %s", plan.cache_key)
                return ProxyResult(cached, 200, credential)

        try:
            payload = await self._fetch(plan)
        except ProxyError as e:
            return ProxyResult(e.to_body(), e.status_code, credential)

        if use_cache and payload:
            await self._cache_set(plan.cache_key, payload)
        return ProxyResult(payload, 200, credential)

    async def _fetch(self, plan: RequestPlan) -> Any:
        logger.info("Proxying %s request to %s", plan.mode.value, plan.url)
        try:
            resp = await self.http_client.get(plan.url, headers=plan.headers, follow_redirects=True)
        except httpx.HTTPError as e:
            logger.error("Upstream request failed for %s: %s", plan.url, e)
            raise TransportError(str(e) or type(e).__name__) from e

        if not resp.is_success:
            logger.warning("Reddit returned %d for %s", resp.status_code, plan.url)
            raise UpstreamError(resp.status_code, resp.text)

        try:
            return resp.json()
        except ValueError as e:
            logger.error("Non-JSON body from %s: %s", plan.url, e)
            raise TransportError(str(e)) from e

    async def _cache_get(self, key: str) -> Any | None:
        try:
            return await self.cache.get(key)
        except CacheError as e:
            logger.error("Cache GET %s: %s", key, e)
            return None

    async def _cache_set(self, key: str, value: Any) -> None:
        try:
            await self.cache.set(key, value, self.settings.cache_ttl_seconds)
        except CacheError as e:
            logger.error("Cache SET %s: %s", key, e)
