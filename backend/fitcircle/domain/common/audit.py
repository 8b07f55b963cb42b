"""Append-only audit streams in redis."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict

from redis.exceptions import RedisError

from fitcircle.infra.redis import redis_client
from fitcircle.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


async def append_event(stream: str, payload: Dict[str, str]) -> bool:
	"""Best effort: the audited write is already committed, so a redis outage is logged and dropped."""
	try:
		await redis_client.xadd(stream, payload)
	except (RedisError, OSError, asyncio.TimeoutError) as exc:
		obs_metrics.inc_audit_failure(stream)
		logger.warning("audit.dropped stream=%s event=%s error=%s", stream, payload.get("event"), type(exc).__name__)
		return False
	return True
