"""Store failure translation shared by the postgres-backed stores."""

from __future__ import annotations

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable

import asyncpg

from fitcircle.infra.postgres import get_pool
from fitcircle.obs import metrics as obs_metrics
from fitcircle.settings import settings

logger = logging.getLogger(__name__)

_STORE_ERRORS = (
	asyncpg.PostgresError,
	asyncpg.InterfaceError,
	OSError,
	asyncio.TimeoutError,
)


class StoreUnavailable(Exception):
	"""Raised when a backing store read or write cannot complete.

	Callers fail closed: nothing partially loaded is ever used to decide
	what a viewer may see.
	"""

	reason = "store_unavailable"

	def __init__(self, operation: str) -> None:
		super().__init__(f"store_unavailable:{operation}")
		self.operation = operation


@asynccontextmanager
async def store_call(operation: str) -> AsyncIterator[None]:
	"""Translate driver, network and timeout failures into StoreUnavailable."""
	try:
		yield
	except StoreUnavailable:
		raise
	except _STORE_ERRORS as exc:
		obs_metrics.inc_store_failure(operation)
		logger.warning("store.failure operation=%s error=%s", operation, type(exc).__name__)
		raise StoreUnavailable(operation) from exc


@asynccontextmanager
async def connection(operation: str) -> AsyncIterator[asyncpg.Connection]:
	"""Pooled connection whose failures (including query errors) surface as StoreUnavailable."""
	async with store_call(operation):
		pool = await get_pool()
		async with pool.acquire(timeout=settings.store_timeout_seconds) as conn:
			yield conn


def decode_json(value: Any, default: Any) -> Any:
	"""jsonb columns arrive as text unless a codec is registered."""
	if value is None:
		return default
	if isinstance(value, (str, bytes)):
		return json.loads(value)
	return value


async def join(*aws: Awaitable[Any]) -> list[Any]:
	"""Await independent reads together; one failure cancels the rest and propagates."""
	tasks = [asyncio.ensure_future(aw) for aw in aws]
	try:
		return list(await asyncio.gather(*tasks))
	except BaseException:
		for task in tasks:
			task.cancel()
		await asyncio.gather(*tasks, return_exceptions=True)
		raise
