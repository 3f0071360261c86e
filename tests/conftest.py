"""Test fixtures — an app built from test Settings, no database needed.

Learn: Login depends on get_credential_verifier, not on the users table
directly. Tests override that one dependency with an in-memory verifier
holding real bcrypt hashes, so the full HTTP → password check → JWT
pipeline runs without Postgres. The SQL-backed verifier has its own
tests in test_credentials.py against a mocked session.
"""

from datetime import timedelta
from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from erm.auth.credentials import CredentialStoreError, Identity
from erm.auth.dependencies import get_credential_verifier
from erm.auth.password import hash_password, verify_password
from erm.auth.tokens import TokenIssuer, TokenVerifier
from erm.config import Settings
from erm.main import create_app

TEST_SECRET = "test-secret-0123456789abcdef0123456789abcdef"

# Low work factor keeps the suite fast; the algorithm is the same.
TEST_ROUNDS = 4


class InMemoryCredentialVerifier:
    """CredentialVerifier over a dict of username → (hash, role)."""

    def __init__(self, users: Optional[dict] = None, fail: bool = False):
        self.users = users or {}
        self.fail = fail

    def add(self, username: str, password: str, role: str = "user") -> None:
        self.users[username] = (hash_password(password, rounds=TEST_ROUNDS), role)

    async def verify(self, username: str, password: str) -> Optional[Identity]:
        if self.fail:
            raise CredentialStoreError("store offline")
        entry = self.users.get(username)
        if entry is None:
            return None
        password_hash, role = entry
        if not verify_password(password, password_hash):
            return None
        return Identity(username=username, role=role)


@pytest.fixture()
def test_settings():
    return Settings(
        jwt_secret=TEST_SECRET,
        jwt_algorithm="HS256",
        token_expire_hours=1,
        bcrypt_rounds=TEST_ROUNDS,
        environment="development",
    )


@pytest.fixture()
def issuer(test_settings):
    return TokenIssuer(
        test_settings.jwt_secret,
        algorithm=test_settings.jwt_algorithm,
        ttl=timedelta(hours=test_settings.token_expire_hours),
    )


@pytest.fixture()
def verifier(test_settings):
    return TokenVerifier(test_settings.jwt_secret, algorithm=test_settings.jwt_algorithm)


@pytest.fixture()
def credentials():
    """Seeded with one admin and one regular user."""
    store = InMemoryCredentialVerifier()
    store.add("admin", "secure_admin_password", role="admin")
    store.add("alice", "alice_password_123", role="user")
    return store


@pytest.fixture()
def app(test_settings, credentials):
    application = create_app(test_settings)
    application.dependency_overrides[get_credential_verifier] = lambda: credentials
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def client(app):
    """HTTP client talking to the app in-process."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture()
async def admin_token(client):
    """A real token obtained through POST /login."""
    r = await client.post(
        "/login",
        json={"username": "admin", "password": "secure_admin_password"},
    )
    assert r.status_code == 200
    return r.json()["token"]
