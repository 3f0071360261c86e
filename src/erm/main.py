"""FastAPI application factory.

Learn: App factory pattern — create_app() returns a configured FastAPI
instance. The token issuer/verifier are built here from Settings and
stored on app.state, so the signing secret is passed in explicitly
rather than read from a global by the auth code.
Lifespan manages startup/shutdown; middleware, CORS, exception
handlers and routers are all registered here.
"""

from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from erm import __version__
from erm.api import api_router
from erm.auth.tokens import TokenIssuer, TokenVerifier
from erm.config import DEFAULT_JWT_SECRET, Settings, settings as default_settings
from erm.db.engine import build_engine, build_session_factory
from erm.errors import register_exception_handlers
from erm.logging_config import configure_logging

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle.

    Learn: Anything before `yield` runs at startup, after `yield` runs at
    shutdown. The DB pool is lazy, so startup only logs; shutdown
    returns pooled connections.
    """
    cfg: Settings = app.state.settings
    logger.info(
        "erm.starting",
        version=__version__,
        environment=cfg.environment,
        port=cfg.port,
        token_expire_hours=cfg.token_expire_hours,
    )
    if cfg.jwt_secret == DEFAULT_JWT_SECRET:
        logger.warning(
            "erm.default_jwt_secret",
            hint="set ERM_JWT_SECRET; the built-in secret is for development only",
        )

    yield

    logger.info("erm.shutdown")

    await app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build and return the FastAPI application."""
    cfg = settings or default_settings
    configure_logging(cfg.log_level, json_logs=cfg.log_json)

    app = FastAPI(
        title="ERM",
        description="Login endpoint issuing signed bearer tokens, plus token-gated routes",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.settings = cfg
    app.state.token_issuer = TokenIssuer(
        cfg.jwt_secret,
        algorithm=cfg.jwt_algorithm,
        ttl=timedelta(hours=cfg.token_expire_hours),
    )
    app.state.token_verifier = TokenVerifier(cfg.jwt_secret, algorithm=cfg.jwt_algorithm)
    app.state.engine = build_engine(cfg)
    app.state.session_factory = build_session_factory(app.state.engine)

    register_exception_handlers(app)

    # ── Middleware stack ──────────────────────────────────────
    # Note: Starlette middleware executes in reverse order of registration.
    # Request flow: Security → RequestContext → CORS → handler
    # RequestContext turns unhandled errors into a JSON 500, so Security
    # must wrap it for those responses to get headers too.

    from erm.middleware.request_context import RequestContextMiddleware
    from erm.middleware.security import SecurityHeadersMiddleware

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)

    app.include_router(api_router)

    return app


# Default app instance (used by uvicorn: erm.main:app)
app = create_app()
