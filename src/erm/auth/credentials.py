"""Credential verification — username/password → Identity.

Learn: Routes never talk to the users table directly. They depend on a
CredentialVerifier, so the storage backend can be swapped (or replaced
with an in-memory verifier in tests) without touching the token logic.
"""

import asyncio
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Protocol

import structlog
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from erm.auth.password import hash_password, verify_password
from erm.db.models import User

logger = structlog.get_logger()


class CredentialStoreError(Exception):
    """The backing credential store could not be queried."""


@dataclass(frozen=True)
class Identity:
    """An authenticated user."""

    username: str
    role: Optional[str] = None


class CredentialVerifier(Protocol):
    """Capability: check a username/password pair.

    Returns the Identity on success, None on unknown user or wrong
    password. Raises CredentialStoreError if the store is unreachable.
    """

    async def verify(self, username: str, password: str) -> Optional[Identity]:
        ...


@lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> str:
    return hash_password("erm-timing-equalizer", rounds=rounds)


class SqlCredentialVerifier:
    """CredentialVerifier backed by the `users` table."""

    def __init__(self, db: AsyncSession, bcrypt_rounds: int = 12):
        self.db = db
        self.bcrypt_rounds = bcrypt_rounds

    async def verify(self, username: str, password: str) -> Optional[Identity]:
        try:
            result = await self.db.execute(
                select(User).where(User.username == username)
            )
            user = result.scalars().first()
        except (SQLAlchemyError, OSError) as e:
            # asyncpg connect failures (refused, DNS, timeout) surface as
            # raw OSErrors, not wrapped by SQLAlchemy.
            logger.error("auth.credential_store_error", error=str(e))
            raise CredentialStoreError("Credential lookup failed") from e

        if user is None:
            # Burn the same bcrypt time so unknown usernames aren't
            # distinguishable from wrong passwords by latency.
            await asyncio.to_thread(
                verify_password, password, _dummy_hash(self.bcrypt_rounds)
            )
            return None

        # bcrypt is CPU-bound — keep it off the event loop.
        if not await asyncio.to_thread(verify_password, password, user.password):
            return None

        return Identity(username=user.username, role=user.role)
