"""Centralized configuration — all env vars in one place."""

import os

DEFAULT_USER_AGENT_PUBLIC = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/100.0.0.0 Safari/537.36"
)
DEFAULT_USER_AGENT_OAUTH_PREFIX = "web:vidzly-oauth:v1.0.2 (by /u/peterson7906)"
LOCAL_SESSION_SECRET = "local_dev_secret"


class Settings:
    """Application settings loaded from environment variables."""

    def __init__(self):
        self.cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
        self.git_sha: str = os.getenv("GIT_SHA", "unknown")
        self.environment: str = os.getenv("ENVIRONMENT", "local")
        self.port: int = int(os.getenv("PORT", "3001"))

        # Reddit OAuth app
        self.reddit_client_id: str | None = os.getenv("REDDIT_CLIENT_ID")
        self.reddit_client_secret: str | None = os.getenv("REDDIT_CLIENT_SECRET")
        self.reddit_redirect_uri: str | None = os.getenv("REDDIT_REDIRECT_URI")
        self.session_secret: str | None = os.getenv("SESSION_SECRET")

        # Upstream
        self.reddit_public_base: str = os.getenv("REDDIT_PUBLIC_BASE", "https://www.reddit.com")
        self.reddit_oauth_base: str = os.getenv("REDDIT_OAUTH_BASE", "https://oauth.reddit.com")
        self.user_agent_public: str = os.getenv("REDDIT_USER_AGENT_PUBLIC", DEFAULT_USER_AGENT_PUBLIC)
        self.user_agent_oauth_prefix: str = os.getenv(
            "REDDIT_USER_AGENT_OAUTH_PREFIX", DEFAULT_USER_AGENT_OAUTH_PREFIX
        )
        self.http_timeout_seconds: float = float(os.getenv("HTTP_TIMEOUT_SECONDS", "10"))

        # Response cache
        self.redis_url: str | None = os.getenv("REDIS_URL")
        self.cache_backend: str = os.getenv("CACHE_BACKEND", "redis" if self.redis_url else "memory")
        self.cache_ttl_seconds: int = int(os.getenv("CACHE_TTL_SECONDS", "300"))
        self.cache_max_entries: int = int(os.getenv("CACHE_MAX_ENTRIES", "1024"))

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def session_signing_key(self) -> str:
        return self.session_secret or LOCAL_SESSION_SECRET

    def validate(self) -> list[str]:
        """Return list of missing env vars required for Reddit sign-in."""
        required = ["REDDIT_CLIENT_ID", "REDDIT_CLIENT_SECRET", "REDDIT_REDIRECT_URI", "SESSION_SECRET"]
        if self.cache_backend == "redis":
            required.append("REDIS_URL")
        return [var for var in required if not getattr(self, _attr_for(var))]


settings = Settings()


def _attr_for(env_var: str) -> str:
    """Map env var name to Settings attribute name."""
    mapping = {
        "REDDIT_CLIENT_ID": "reddit_client_id",
        "REDDIT_CLIENT_SECRET": "reddit_client_secret",
        "REDDIT_REDIRECT_URI": "reddit_redirect_uri",
        "SESSION_SECRET": "session_secret",
    }
    return mapping.get(env_var, env_var.lower())
