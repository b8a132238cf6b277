"""Migration runner for both production startup scripts and tests."""

import asyncio

from alembic.config import Config

from alembic import command


def run_migrations_sync(revision: str = "head") -> None:
    """Run Alembic migrations synchronously against DATABASE_URL."""
    alembic_cfg = Config("alembic.ini")
    command.upgrade(alembic_cfg, revision)


async def run_migrations_async(revision: str = "head") -> None:
    """Run Alembic migrations from async context without blocking the loop."""
    await asyncio.to_thread(run_migrations_sync, revision)
