"""Reddit routes: listing proxy and the signed-in user's identity."""

import logging

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from dependencies import get_oauth_client, get_proxy_handler
from errors import CredentialRefreshError, NotAuthenticatedError
from services import session
from services.reddit_oauth import RedditOAuthClient
from services.reddit_proxy import DEFAULT_LIMIT, ProxyHandler, ProxyRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def _parse_limit(raw: str | None) -> int:
    """Lenient limit parsing: anything unusable falls back to the feed default."""
    try:
        limit = int(raw) if raw is not None else DEFAULT_LIMIT
    except ValueError:
        return DEFAULT_LIMIT
    return limit if limit > 0 else DEFAULT_LIMIT


@router.get("/redditProxy/{subreddit_name}")
async def reddit_proxy(
    request: Request,
    subreddit_name: str,
    limit: str | None = Query(None),
    after: str = Query(""),
    handler: ProxyHandler = Depends(get_proxy_handler),
) -> JSONResponse:
    """Top posts of all time for a subreddit, as the signed-in user when possible."""
    proxy_request = ProxyRequest(subreddit=subreddit_name, limit=_parse_limit(limit), after=after)
    credential = session.load_credential(request)

    result = await handler.handle(proxy_request, credential)

    session.sync_credential(request, credential, result.credential)
    return JSONResponse(result.body, status_code=result.status_code)


@router.get("/reddit/me")
async def reddit_me(request: Request, oauth: RedditOAuthClient = Depends(get_oauth_client)) -> dict:
    credential = session.load_credential(request)
    if credential is None:
        raise NotAuthenticatedError()

    if not oauth.is_valid(credential):
        try:
            credential = await oauth.refresh(credential)
        except CredentialRefreshError as e:
            request.session.clear()
            raise CredentialRefreshError() from e
        session.store_credential(request, credential)

    return await oauth.get_identity(credential)
