"""Read and write the Reddit credential in the signed cookie session.

The cookie is signed, not encrypted (see ``app.py``), so the stored token
dict is visible to whoever holds the cookie.
"""

import logging

from fastapi import Request

from services.reddit_oauth import CredentialState

logger = logging.getLogger(__name__)

TOKEN_KEY = "reddit_token"
STATE_KEY = "oauth_state"


def load_credential(request: Request) -> CredentialState | None:
    raw = request.session.get(TOKEN_KEY)
    if not raw:
        return None
    try:
        return CredentialState.from_dict(raw)
    except (KeyError, TypeError, ValueError) as e:
        logger.warning("Discarding malformed session token: %s", e)
        request.session.pop(TOKEN_KEY, None)
        return None


def store_credential(request: Request, credential: CredentialState) -> None:
    request.session[TOKEN_KEY] = credential.to_dict()


def clear_credential(request: Request) -> None:
    request.session.pop(TOKEN_KEY, None)


def sync_credential(request: Request, before: CredentialState | None, after: CredentialState | None) -> None:
    """Persist whatever the credential became during a request (refreshed or dropped)."""
    if after is before:
        return
    if after is None:
        clear_credential(request)
    else:
        store_credential(request, after)


def pop_oauth_state(request: Request) -> str | None:
    return request.session.pop(STATE_KEY, None)


def set_oauth_state(request: Request, state: str) -> None:
    request.session[STATE_KEY] = state
