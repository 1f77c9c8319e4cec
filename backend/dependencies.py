"""FastAPI dependency providers over the clients created at startup."""

import httpx
from fastapi import Depends, Request

from config import settings
from services.cache import CacheStore
from services.reddit_oauth import RedditOAuthClient
from services.reddit_proxy import ProxyHandler


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_cache(request: Request) -> CacheStore | None:
    return request.app.state.cache


def get_oauth_client(http_client: httpx.AsyncClient = Depends(get_http_client)) -> RedditOAuthClient:
    return RedditOAuthClient(settings, http_client)


def get_proxy_handler(
    http_client: httpx.AsyncClient = Depends(get_http_client),
    cache: CacheStore | None = Depends(get_cache),
    oauth: RedditOAuthClient = Depends(get_oauth_client),
) -> ProxyHandler:
    return ProxyHandler(settings, http_client, cache=cache, credentials=oauth)
