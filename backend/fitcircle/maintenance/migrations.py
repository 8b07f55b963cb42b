"""Apply the SQL files under infra/migrations in version order.

Run with `python -m fitcircle.maintenance.migrations` against POSTGRES_URL.
"""

from __future__ import annotations

import asyncio
import logging
import pathlib
from typing import Optional

import asyncpg

from fitcircle.settings import settings

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = pathlib.Path(__file__).resolve().parents[3] / "infra" / "migrations"


def pending(paths: list[pathlib.Path], applied: set[str]) -> list[pathlib.Path]:
	return [path for path in sorted(paths) if path.name.split("_", 1)[0] not in applied]


async def apply_all(dsn: Optional[str] = None, directory: pathlib.Path = MIGRATIONS_DIR) -> list[str]:
	paths = list(directory.glob("*.sql"))
	if not paths:
		raise SystemExit("no migration files found")
	conn = await asyncpg.connect(dsn or settings.postgres_url)
	done: list[str] = []
	try:
		await conn.execute(
			"""
			CREATE TABLE IF NOT EXISTS schema_migrations (
				version TEXT PRIMARY KEY,
				applied_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
			)
			"""
		)
		applied = {row["version"] for row in await conn.fetch("SELECT version FROM schema_migrations")}
		for path in pending(paths, applied):
			version = path.name.split("_", 1)[0]
			async with conn.transaction():
				await conn.execute(path.read_text())
				await conn.execute(
					"INSERT INTO schema_migrations (version) VALUES ($1) ON CONFLICT (version) DO NOTHING",
					version,
				)
			logger.info("migration.applied file=%s", path.name)
			done.append(path.name)
	finally:
		await conn.close()
	return done


if __name__ == "__main__":
	logging.basicConfig(level=logging.INFO)
	asyncio.run(apply_all())
