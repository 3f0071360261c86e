"""Protected route group — everything here sits behind get_current_claims."""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from erm.auth.dependencies import get_current_claims
from erm.auth.tokens import TokenClaims

router = APIRouter(prefix="/v1")


class MeResponse(BaseModel):
    username: str
    role: Optional[str] = None
    expires_at: datetime


@router.get("/protected")
async def protected_endpoint():
    """Placeholder payload — reachable only with a valid token."""
    return {"message": "You have accessed a protected route!"}


@router.get("/me", response_model=MeResponse)
async def get_me(claims: TokenClaims = Depends(get_current_claims)):
    """Echo the caller's identity from the decoded token claims."""
    return MeResponse(
        username=claims.subject,
        role=claims.role,
        expires_at=claims.expires_at,
    )
