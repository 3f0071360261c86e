"""API route aggregation.

All routers registered here get mounted in main.py.

Learn: Auth is applied at the include_router level using FastAPI's
dependencies parameter. This protects all routes in the /v1 group
without modifying individual handlers. Health and login are open.
"""

from fastapi import APIRouter, Depends

from erm.api.auth import router as auth_router
from erm.api.health import router as health_router
from erm.api.protected import router as protected_router
from erm.auth.dependencies import get_current_claims

# All protected routers require a valid bearer token
_auth = [Depends(get_current_claims)]

api_router = APIRouter()

# Open routes — no auth required
api_router.include_router(health_router, tags=["health"])
api_router.include_router(auth_router, tags=["auth"])

# Protected routes — require a valid JWT
api_router.include_router(protected_router, tags=["protected"], dependencies=_auth)
