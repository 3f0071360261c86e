"""Login endpoint tests.

Learn: Tests cover:
1. Good credentials → 200 {token}, and the token is real
2. Wrong password / unknown user → 401 with the same message
3. Malformed bodies → 400 {error}
4. Credential store down → 500 {error}

Pattern: test_<verb>_<noun>_<scenario>
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from erm.auth.credentials import SqlCredentialVerifier
from erm.auth.dependencies import get_credential_verifier

from conftest import InMemoryCredentialVerifier


# ═══════════════════════════════════════════════════════════
# Success
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_success(client, verifier):
    """Valid credentials return a non-empty token for that user."""
    r = await client.post(
        "/login",
        json={"username": "admin", "password": "secure_admin_password"},
    )
    assert r.status_code == 200
    body = r.json()
    assert set(body) == {"token"}
    assert body["token"]

    claims = verifier.verify(body["token"])
    assert claims.subject == "admin"
    assert claims.role == "admin"


@pytest.mark.asyncio
async def test_login_response_not_cacheable(client):
    r = await client.post(
        "/login",
        json={"username": "alice", "password": "alice_password_123"},
    )
    assert r.status_code == 200
    assert r.headers["Cache-Control"] == "no-store"


# ═══════════════════════════════════════════════════════════
# Invalid credentials
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_wrong_password(client):
    r = await client.post(
        "/login",
        json={"username": "admin", "password": "wrong_password"},
    )
    assert r.status_code == 401
    assert r.json() == {"error": "Invalid username or password"}


@pytest.mark.asyncio
async def test_login_unknown_user_same_message(client):
    """Unknown usernames are indistinguishable from wrong passwords."""
    r = await client.post(
        "/login",
        json={"username": "nobody", "password": "whatever"},
    )
    assert r.status_code == 401
    assert r.json() == {"error": "Invalid username or password"}


# ═══════════════════════════════════════════════════════════
# Bad input
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {},
        {"username": "admin"},
        {"password": "secure_admin_password"},
        {"username": "", "password": "x"},
        {"username": "admin", "password": ""},
        {"username": 42, "password": ["x"]},
    ],
)
async def test_login_invalid_body(client, body):
    r = await client.post("/login", json=body)
    assert r.status_code == 400
    assert "error" in r.json()


@pytest.mark.asyncio
async def test_login_malformed_json(client):
    r = await client.post(
        "/login",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )
    assert r.status_code == 400
    assert "error" in r.json()


# ═══════════════════════════════════════════════════════════
# Store failure
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_login_database_error(app, client):
    app.dependency_overrides[get_credential_verifier] = (
        lambda: InMemoryCredentialVerifier(fail=True)
    )
    r = await client.post(
        "/login",
        json={"username": "admin", "password": "secure_admin_password"},
    )
    assert r.status_code == 500
    assert r.json() == {"error": "Database error"}


@pytest.mark.asyncio
async def test_login_database_unreachable(app, client):
    """A refused DB connection maps to the same 500 as any store failure."""
    session = MagicMock()
    session.execute = AsyncMock(
        side_effect=ConnectionRefusedError(111, "Connect call failed")
    )
    app.dependency_overrides[get_credential_verifier] = (
        lambda: SqlCredentialVerifier(session, bcrypt_rounds=4)
    )
    r = await client.post(
        "/login",
        json={"username": "admin", "password": "secure_admin_password"},
    )
    assert r.status_code == 500
    assert r.json() == {"error": "Database error"}
    assert "X-Request-ID" in r.headers
