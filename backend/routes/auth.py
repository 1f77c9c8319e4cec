"""Reddit sign-in routes.

The frontend opens ``/api/auth/reddit`` in a popup. After Reddit redirects
back to the callback, the popup posts ``reddit_auth_success`` or
``reddit_auth_failure`` to its opener and closes itself.
"""

import logging
import secrets

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from dependencies import get_oauth_client
from errors import OAuthError
from services import session
from services.reddit_oauth import RedditOAuthClient

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth")

AUTH_SUCCESS = "reddit_auth_success"
AUTH_FAILURE = "reddit_auth_failure"


def _popup_response(message: str) -> HTMLResponse:
    return HTMLResponse(
        f'<script>window.opener.postMessage("{message}", "*"); window.close();</script>'
    )


@router.get("/reddit")
async def start_reddit_auth(
    request: Request, oauth: RedditOAuthClient = Depends(get_oauth_client)
) -> RedirectResponse:
    state = secrets.token_hex(16)
    session.set_oauth_state(request, state)
    return RedirectResponse(oauth.authorize_url(state))


@router.get("/reddit/callback")
async def reddit_auth_callback(
    request: Request,
    code: str | None = Query(None),
    state: str | None = Query(None),
    error: str | None = Query(None),
    oauth: RedditOAuthClient = Depends(get_oauth_client),
) -> HTMLResponse:
    expected_state = session.pop_oauth_state(request)
    if error:
        logger.warning("Reddit denied authorization: %s", error)
        return _popup_response(AUTH_FAILURE)
    if not state or state != expected_state or not code:
        logger.warning("OAuth callback with missing code or mismatched state")
        return _popup_response(AUTH_FAILURE)

    try:
        credential = await oauth.exchange_code(code)
    except OAuthError:
        return _popup_response(AUTH_FAILURE)

    session.store_credential(request, credential)
    logger.info("Reddit sign-in complete")
    return _popup_response(AUTH_SUCCESS)


@router.get("/logout")
async def logout(request: Request) -> dict:
    if not request.session:
        return {"message": "No session."}
    request.session.clear()
    return {"message": "Logged out."}
