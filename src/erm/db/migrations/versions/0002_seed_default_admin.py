"""seed default admin

Learn: Creates the administrator account from ERM_ADMIN_USERNAME /
ERM_ADMIN_PASSWORD. The password is bcrypt-hashed here, at migration
time, so plaintext never reaches the database. With no password set
the seed is skipped; an existing admin row is never overwritten.

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19 09:05:00.000000
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
import structlog

from erm.auth.password import hash_password
from erm.config import settings


# revision identifiers, used by Alembic.
revision: str = '0002'
down_revision: Union[str, None] = '0001'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

logger = structlog.get_logger()


def upgrade() -> None:
    if not settings.admin_password:
        logger.info("migrations.admin_seed_skipped", reason="ERM_ADMIN_PASSWORD not set")
        return

    op.execute(
        sa.text(
            "INSERT INTO users (username, password, role) "
            "VALUES (:username, :password, 'admin') "
            "ON CONFLICT (username) DO NOTHING"
        ).bindparams(
            username=settings.admin_username,
            password=hash_password(
                settings.admin_password, rounds=settings.bcrypt_rounds
            ),
        )
    )
    logger.info("migrations.admin_seeded", username=settings.admin_username)


def downgrade() -> None:
    op.execute(
        sa.text(
            "DELETE FROM users WHERE username = :username AND role = 'admin'"
        ).bindparams(username=settings.admin_username)
    )
