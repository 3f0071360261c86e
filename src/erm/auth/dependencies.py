"""FastAPI auth dependencies.

Learn: These are used as Depends() in route handlers. The issuer and
verifier are built once by create_app() and read from app.state here,
so no handler ever touches the signing secret directly.

get_current_claims is the gate for the protected route group: it is
attached at include_router level in erm.api, so every route in the
group requires a valid bearer token.
"""

from typing import Optional

import structlog
from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from erm.auth.credentials import CredentialVerifier, SqlCredentialVerifier
from erm.auth.tokens import (
    MissingCredentials,
    TokenClaims,
    TokenError,
    TokenIssuer,
    TokenVerifier,
    extract_bearer,
)
from erm.db.engine import get_db

logger = structlog.get_logger()

_CHALLENGE = {"WWW-Authenticate": "Bearer"}


def get_token_issuer(request: Request) -> TokenIssuer:
    return request.app.state.token_issuer


def get_token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.token_verifier


def get_credential_verifier(
    request: Request,
    db: AsyncSession = Depends(get_db),
) -> CredentialVerifier:
    """Default credential backend — the `users` table."""
    return SqlCredentialVerifier(
        db, bcrypt_rounds=request.app.state.settings.bcrypt_rounds
    )


async def get_current_claims(
    request: Request,
    authorization: Optional[str] = Header(None),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> TokenClaims:
    """Admit the request only with a valid, unexpired bearer token.

    Learn: The client gets one of two fixed messages. Why the token was
    rejected (bad signature, wrong alg, expired) goes to the server log
    only — echoing it would tell an attacker what to tweak.
    """
    try:
        token = extract_bearer(authorization)
    except MissingCredentials as e:
        logger.info("auth.missing_credentials", path=request.url.path, reason=str(e))
        raise HTTPException(
            status_code=401,
            detail="Missing or malformed token",
            headers=_CHALLENGE,
        )

    try:
        claims = verifier.verify(token)
    except TokenError as e:
        logger.warning(
            "auth.token_rejected",
            path=request.url.path,
            reason=type(e).__name__,
            detail=str(e),
        )
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired token",
            headers=_CHALLENGE,
        )

    request.state.claims = claims
    structlog.contextvars.bind_contextvars(user=claims.subject)
    return claims
