"""Reddit OAuth2 client: authorization code flow with permanent tokens.

Reddit wants the app's client id/secret as HTTP Basic auth on the token
endpoint, and a descriptive User-Agent on every call. Access tokens last an
hour; the refresh token from a ``duration=permanent`` grant does not expire.
"""

import logging
import time
from dataclasses import asdict, dataclass
from typing import Any, Protocol

import httpx

from config import Settings
from errors import CredentialRefreshError, OAuthError, ProxyError

logger = logging.getLogger(__name__)

REDDIT_AUTHORIZE_URL = "https://www.reddit.com/api/v1/authorize"
REDDIT_TOKEN_URL = "https://www.reddit.com/api/v1/access_token"
REDDIT_SCOPES = "identity read mysubreddits history vote save submit privatemessages"

# Tokens this close to expiry are treated as already expired
EXPIRY_MARGIN_SECONDS = 60


@dataclass(frozen=True)
class CredentialState:
    access_token: str
    expires_at: float
    refresh_token: str | None = None
    token_type: str = "bearer"
    scope: str = ""

    @classmethod
    def from_token_response(cls, data: dict, now: float, previous: "CredentialState | None" = None):
        """Build from Reddit's token JSON. Keeps the previous refresh token if none is returned."""
        access_token = data.get("access_token")
        if not access_token:
            raise ValueError("Token response has no access_token")
        refresh_token = data.get("refresh_token") or (previous.refresh_token if previous else None)
        return cls(
            access_token=access_token,
            expires_at=now + float(data.get("expires_in", 3600)),
            refresh_token=refresh_token,
            token_type=data.get("token_type", "bearer"),
            scope=data.get("scope", ""),
        )

    @classmethod
    def from_dict(cls, data: dict) -> "CredentialState":
        return cls(
            access_token=data["access_token"],
            expires_at=float(data["expires_at"]),
            refresh_token=data.get("refresh_token"),
            token_type=data.get("token_type", "bearer"),
            scope=data.get("scope", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class CredentialProvider(Protocol):
    def is_valid(self, credential: CredentialState) -> bool: ...

    async def refresh(self, credential: CredentialState) -> CredentialState: ...


class RedditOAuthClient:
    def __init__(self, settings: Settings, http_client: httpx.AsyncClient, clock=time.time):
        self.settings = settings
        self.http_client = http_client
        self.clock = clock

    def _user_agent(self, purpose: str) -> str:
        return f"{self.settings.user_agent_oauth_prefix} {purpose}"

    def _client_auth(self) -> httpx.BasicAuth:
        return httpx.BasicAuth(self.settings.reddit_client_id or "", self.settings.reddit_client_secret or "")

    def is_valid(self, credential: CredentialState) -> bool:
        return self.clock() < credential.expires_at - EXPIRY_MARGIN_SECONDS

    def authorize_url(self, state: str) -> str:
        if not self.settings.reddit_client_id or not self.settings.reddit_redirect_uri:
            raise ProxyError("Reddit OAuth is not configured", status_code=500)
        params = {
            "client_id": self.settings.reddit_client_id,
            "response_type": "code",
            "state": state,
            "redirect_uri": self.settings.reddit_redirect_uri,
            "duration": "permanent",
            "scope": REDDIT_SCOPES,
        }
        return str(httpx.URL(REDDIT_AUTHORIZE_URL, params=params))

    async def _token_request(self, form: dict, purpose: str) -> dict:
        resp = await self.http_client.post(
            REDDIT_TOKEN_URL,
            data=form,
            auth=self._client_auth(),
            headers={"User-Agent": self._user_agent(purpose), "Accept": "application/json"},
        )
        resp.raise_for_status()
        data = resp.json()
        if not isinstance(data, dict):
            raise ValueError(f"Token endpoint returned {type(data).__name__}, expected an object")
        if "error" in data:
            raise ValueError(f"Token endpoint returned error: {data['error']}")
        return data

    async def exchange_code(self, code: str) -> CredentialState:
        """Trade an authorization code for tokens."""
        form = {
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.settings.reddit_redirect_uri or "",
        }
        try:
            data = await self._token_request(form, "TokenExchange")
            return CredentialState.from_token_response(data, now=self.clock())
        except (httpx.HTTPError, ValueError, TypeError, KeyError) as e:
            logger.error("Access token exchange failed: %s", e)
            raise OAuthError(f"Access token exchange failed: {e}") from e

    async def refresh(self, credential: CredentialState) -> CredentialState:
        """Get a fresh access token. Raises CredentialRefreshError on any failure."""
        if not credential.refresh_token:
            raise CredentialRefreshError("No refresh token available")
        form = {"grant_type": "refresh_token", "refresh_token": credential.refresh_token}
        try:
            data = await self._token_request(form, "TokenRefresh")
            refreshed = CredentialState.from_token_response(data, now=self.clock(), previous=credential)
        except (httpx.HTTPError, ValueError, TypeError, KeyError) as e:
            logger.warning("Token refresh failed: %s", e)
            raise CredentialRefreshError() from e
        logger.info("Refreshed Reddit access token (expires in %ds)", refreshed.expires_at - self.clock())
        return refreshed

    async def get_identity(self, credential: CredentialState) -> dict:
        """Fetch the signed-in user's id, name and avatar."""
        try:
            resp = await self.http_client.get(
                f"{self.settings.reddit_oauth_base}/api/v1/me",
                headers={
                    "Authorization": f"Bearer {credential.access_token}",
                    "User-Agent": self._user_agent("APIRequest /me"),
                },
            )
            if not resp.is_success:
                raise ValueError(f"Reddit API error /me: {resp.status_code}")
            data = resp.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error("Fetching Reddit identity failed: %s", e)
            raise ProxyError("Server error fetching user.", status_code=500) from e

        icon_img = data.get("icon_img")
        return {
            "id": data.get("id"),
            "name": data.get("name"),
            "icon_img": icon_img.split("?")[0] if icon_img else None,
        }
