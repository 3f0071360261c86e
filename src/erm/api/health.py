"""Health check endpoint.

Learn: Simple GET endpoint that verifies the server is running and the
credential database is reachable. Always 200 — a down database shows
up as "degraded", not as an error, so load balancers can tell the
process itself is alive.
"""

from fastapi import APIRouter, Request
from sqlalchemy import text

from erm import __version__

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Check server health and database connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        async with request.app.state.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {type(e).__name__}"

    status = "healthy" if checks["database"] == "ok" else "degraded"
    return {"status": status, **checks}
