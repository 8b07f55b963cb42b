"""Per-user field visibility maps."""

from __future__ import annotations

import asyncio
import json
from typing import Any, Iterable, Mapping, Optional, Protocol

from fitcircle.domain.common.store import connection, decode_json
from fitcircle.domain.visibility.models import ProfileField, VisibilityLevel
from fitcircle.settings import settings


def coerce_stored(raw: Optional[Mapping[str, Any]]) -> dict[ProfileField, VisibilityLevel]:
	"""Read a persisted map: unknown keys are dropped, unreadable tiers become private.

	Only entries the subject set are present; missing fields mean the defaults.
	"""
	levels: dict[ProfileField, VisibilityLevel] = {}
	for key, value in (raw or {}).items():
		field = ProfileField.parse(key)
		if field is None:
			continue
		try:
			levels[field] = VisibilityLevel(str(value).strip().lower())
		except ValueError:
			levels[field] = VisibilityLevel.PRIVATE
	return levels


def dump_levels(levels: Mapping[ProfileField, VisibilityLevel]) -> dict[str, str]:
	return {field.value: VisibilityLevel(level).value for field, level in levels.items()}


def stored_keys(field: ProfileField) -> tuple[str, ...]:
	"""Every key a persisted map may use for `field`."""
	return (field.value, field.legacy_key, f"{field.value}_visibility")


class PrivacyStore(Protocol):
	async def get(self, user_id: str) -> Optional[dict[ProfileField, VisibilityLevel]]: ...

	async def get_many(self, user_ids: Iterable[str]) -> dict[str, dict[ProfileField, VisibilityLevel]]: ...

	async def merge(
		self,
		user_id: str,
		updates: Mapping[ProfileField, VisibilityLevel],
	) -> tuple[dict[ProfileField, VisibilityLevel], dict[ProfileField, VisibilityLevel]]:
		"""Apply `updates` over the stored entries atomically; return (previous, merged)."""
		...


class MemoryPrivacyStore:
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self.maps: dict[str, dict[str, str]] = {}

	async def reset(self) -> None:
		async with self._lock:
			self.maps.clear()

	async def seed(self, maps: Mapping[str, Mapping[str, str]]) -> None:
		async with self._lock:
			self.maps = {user_id: dict(raw) for user_id, raw in maps.items()}

	async def get(self, user_id: str) -> Optional[dict[ProfileField, VisibilityLevel]]:
		async with self._lock:
			raw = self.maps.get(user_id)
		return coerce_stored(raw) if raw is not None else None

	async def get_many(self, user_ids: Iterable[str]) -> dict[str, dict[ProfileField, VisibilityLevel]]:
		async with self._lock:
			found = {user_id: self.maps[user_id] for user_id in user_ids if user_id in self.maps}
		return {user_id: coerce_stored(raw) for user_id, raw in found.items()}

	async def merge(
		self,
		user_id: str,
		updates: Mapping[ProfileField, VisibilityLevel],
	) -> tuple[dict[ProfileField, VisibilityLevel], dict[ProfileField, VisibilityLevel]]:
		async with self._lock:
			previous = coerce_stored(self.maps.get(user_id))
			merged = {**previous, **updates}
			self.maps[user_id] = dump_levels(merged)
		return previous, merged


class PostgresPrivacyStore:
	def __init__(self, *, timeout: Optional[float] = None) -> None:
		self._timeout = timeout or settings.store_timeout_seconds

	async def get(self, user_id: str) -> Optional[dict[ProfileField, VisibilityLevel]]:
		async with connection("privacy.get") as conn:
			row = await conn.fetchrow(
				"SELECT settings FROM privacy_settings WHERE user_id = $1",
				user_id,
				timeout=self._timeout,
			)
		if row is None:
			return None
		return coerce_stored(decode_json(row["settings"], {}))

	async def get_many(self, user_ids: Iterable[str]) -> dict[str, dict[ProfileField, VisibilityLevel]]:
		ids = sorted(set(user_ids))
		if not ids:
			return {}
		async with connection("privacy.get_many") as conn:
			rows = await conn.fetch(
				"SELECT user_id, settings FROM privacy_settings WHERE user_id::text = ANY($1::text[])",
				ids,
				timeout=self._timeout,
			)
		return {str(row["user_id"]): coerce_stored(decode_json(row["settings"], {})) for row in rows}

	async def merge(
		self,
		user_id: str,
		updates: Mapping[ProfileField, VisibilityLevel],
	) -> tuple[dict[ProfileField, VisibilityLevel], dict[ProfileField, VisibilityLevel]]:
		async with connection("privacy.merge") as conn:
			async with conn.transaction():
				previous = await conn.fetchval(
					"SELECT settings FROM privacy_settings WHERE user_id = $1 FOR UPDATE",
					user_id,
					timeout=self._timeout,
				)
				# concurrent first writes meet in ON CONFLICT and merge there
				merged = await conn.fetchval(
					"""
					INSERT INTO privacy_settings (user_id, settings, updated_at)
					VALUES ($1, $2::jsonb, NOW())
					ON CONFLICT (user_id)
					DO UPDATE SET settings = (privacy_settings.settings - $3::text[]) || EXCLUDED.settings,
						updated_at = NOW()
					RETURNING settings
					""",
					user_id,
					json.dumps(dump_levels(updates)),
					[key for field in updates for key in stored_keys(field)],
					timeout=self._timeout,
				)
		return coerce_stored(decode_json(previous, {})), coerce_stored(decode_json(merged, {}))


_MEMORY = MemoryPrivacyStore()


def get_privacy_store() -> PrivacyStore:
	if settings.store_backend == "memory":
		return _MEMORY
	return PostgresPrivacyStore()


def memory_store() -> MemoryPrivacyStore:
	return _MEMORY
