"""FastAPI application entry point for the Vidzly backend.

Sessions live in Starlette's signed cookie. Signing stops tampering but
does not hide the contents: the Reddit access and refresh tokens stored
there are readable by anyone holding the cookie. The cookie is httponly,
and secure in production, which keeps it away from page scripts and
plain-HTTP hops. Deployments that need tokens kept off the client should
swap in a server-side session store.
"""

import logging
import sys

import httpx
import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from config import settings
from errors import register_error_handlers
from services.cache import build_cache

# Structured logging: JSON for production, human-readable for local
if settings.is_production:
    logging.basicConfig(
        level=logging.INFO,
        format='{"time":"%(asctime)s","level":"%(levelname)s","logger":"%(name)s","message":"%(message)s"}',
        stream=sys.stdout,
    )
else:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

logger = logging.getLogger(__name__)

SESSION_MAX_AGE_SECONDS = 86400


def create_app() -> FastAPI:
    app = FastAPI(title="Vidzly Backend", version="1.0.2")

    # Sessions: signed cookie holding the Reddit token and OAuth state
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_signing_key,
        max_age=SESSION_MAX_AGE_SECONDS,
        same_site="none" if settings.is_production else "lax",
        https_only=settings.is_production,
    )

    # CORS: credentials are required for the session cookie
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Security headers
    @app.middleware("http")
    async def add_security_headers(request: Request, call_next):
        response: Response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response

    # Centralized error handlers
    register_error_handlers(app)

    from routes.auth import router as auth_router
    from routes.health import router as health_router
    from routes.reddit import router as reddit_router

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(reddit_router)

    @app.on_event("startup")
    async def _startup() -> None:
        missing = settings.validate()
        if missing:
            logger.warning("Missing env vars (Reddit sign-in may fail): %s", ", ".join(missing))
        app.state.http_client = httpx.AsyncClient(timeout=settings.http_timeout_seconds, follow_redirects=True)
        app.state.cache = build_cache(settings)

    @app.on_event("shutdown")
    async def _shutdown() -> None:
        await app.state.http_client.aclose()
        if app.state.cache is not None:
            await app.state.cache.close()

    return app


app = create_app()


def main() -> None:
    logger.info("Local backend on http://localhost:%d", settings.port)
    uvicorn.run(app, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
