"""Auth API — login.

Learn: POST /login checks the username/password through the
CredentialVerifier and answers with a signed token:
    {"username": "admin", "password": "..."} → {"token": "<jwt>"}

Both "unknown user" and "wrong password" get the same 401 message so
the endpoint can't be used to enumerate usernames.
"""

import structlog
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from erm.auth.credentials import CredentialStoreError, CredentialVerifier
from erm.auth.dependencies import get_credential_verifier, get_token_issuer
from erm.auth.tokens import TokenError, TokenIssuer

logger = structlog.get_logger()

router = APIRouter()


# ─── Schemas ─────────────────────────────────────────────


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    token: str


# ─── Login ───────────────────────────────────────────────


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    credentials: CredentialVerifier = Depends(get_credential_verifier),
    issuer: TokenIssuer = Depends(get_token_issuer),
):
    """Login with username and password → JWT."""
    try:
        identity = await credentials.verify(body.username, body.password)
    except CredentialStoreError:
        raise HTTPException(status_code=500, detail="Database error")

    if identity is None:
        logger.info("auth.login_failed", username=body.username)
        raise HTTPException(status_code=401, detail="Invalid username or password")

    try:
        token = issuer.issue_for(identity)
    except TokenError as e:
        logger.error("auth.token_issue_failed", username=identity.username, error=str(e))
        raise HTTPException(status_code=500, detail="Failed to generate token")

    logger.info("auth.login_succeeded", username=identity.username, role=identity.role)
    return TokenResponse(token=token)
