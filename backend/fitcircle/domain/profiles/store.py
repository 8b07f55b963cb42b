"""Profile store: raw profile reads for preview and discovery."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional, Protocol

from fitcircle.domain.common.store import connection, decode_json
from fitcircle.domain.profiles.models import RawProfile
from fitcircle.settings import settings

_LIST_COLUMNS = (
	"goals",
	"limitations",
	"workout_history",
	"capabilities",
	"personal_records",
	"badges",
	"sports",
)

_COLUMNS = (
	"user_id, handle, display_name, visibility, full_name, picture, city, state, bio, "
	"age, weight, body_fat, fitness_level, " + ", ".join(_LIST_COLUMNS)
)


IDENTITY_TEXT_COLUMNS = ("handle", "display_name")
GATED_TEXT_COLUMNS = ("city", "state", "bio")


class TextScope(str, Enum):
	# handle or display name; always visible, ordered by match priority
	IDENTITY = "identity"
	# city, state or bio but not an identity column; ordered by display name
	GATED = "gated"


def _contains(needle: str, values: Iterable[Optional[str]]) -> bool:
	return any(value and needle in value.casefold() for value in values)


@dataclass(frozen=True, slots=True)
class CandidateFilter:
	"""Candidate predicate pushed down to the store.

	Without `text` rows come back in creation order. GATED matches only
	narrow the scan: callers must re-check them against what the viewer
	may actually see.
	"""

	exclude_ids: frozenset[str] = frozenset()
	include_ids: Optional[frozenset[str]] = None
	discoverable_only: bool = True
	text: Optional[str] = None
	scope: TextScope = TextScope.IDENTITY

	def admits(self, profile: RawProfile) -> bool:
		if profile.user_id in self.exclude_ids:
			return False
		if self.include_ids is not None and profile.user_id not in self.include_ids:
			return False
		if self.discoverable_only and not profile.is_discoverable():
			return False
		if not self.text:
			return True
		needle = self.text.casefold()
		identity = _contains(needle, (profile.value(column) for column in IDENTITY_TEXT_COLUMNS))
		if self.scope is TextScope.IDENTITY:
			return identity
		return not identity and _contains(needle, (profile.value(column) for column in GATED_TEXT_COLUMNS))

	def order_key(self, profile: RawProfile) -> tuple:
		name = (profile.display_name or "").casefold()
		if self.scope is TextScope.GATED:
			return (name, profile.user_id)
		needle = self.text.casefold() if self.text else ""
		handle = (profile.handle or "").casefold()
		if handle == needle:
			priority = 0
		elif needle in handle:
			priority = 1
		else:
			priority = 2
		return (priority, name, profile.user_id)


class ProfileStore(Protocol):
	async def get(self, user_id: str) -> Optional[RawProfile]: ...

	async def get_by_handle(self, handle: str) -> Optional[RawProfile]: ...

	async def search(self, predicate: CandidateFilter, limit: int, offset: int) -> list[RawProfile]: ...


class MemoryProfileStore:
	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self.profiles: dict[str, RawProfile] = {}

	async def reset(self) -> None:
		async with self._lock:
			self.profiles.clear()

	async def seed(self, profiles: Iterable[RawProfile]) -> None:
		async with self._lock:
			self.profiles = {profile.user_id: profile for profile in profiles}

	async def upsert(self, profile: RawProfile) -> None:
		async with self._lock:
			self.profiles[profile.user_id] = profile

	async def get(self, user_id: str) -> Optional[RawProfile]:
		async with self._lock:
			return self.profiles.get(user_id)

	async def get_by_handle(self, handle: str) -> Optional[RawProfile]:
		wanted = handle.casefold()
		async with self._lock:
			for profile in self.profiles.values():
				if profile.handle and profile.handle.casefold() == wanted:
					return profile
		return None

	async def search(self, predicate: CandidateFilter, limit: int, offset: int) -> list[RawProfile]:
		async with self._lock:
			matches = [profile for profile in self.profiles.values() if predicate.admits(profile)]
		if predicate.text:
			matches.sort(key=predicate.order_key)
		return matches[offset : offset + limit]


def _escape_like(text: str) -> str:
	return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _profile_from_row(row) -> RawProfile:
	data = dict(row)
	for column in _LIST_COLUMNS:
		data[column] = decode_json(data.get(column), [])
	return RawProfile.from_record(data)


class PostgresProfileStore:
	def __init__(self, *, timeout: Optional[float] = None) -> None:
		self._timeout = timeout or settings.store_timeout_seconds

	async def get(self, user_id: str) -> Optional[RawProfile]:
		async with connection("profiles.get") as conn:
			row = await conn.fetchrow(
				f"SELECT {_COLUMNS} FROM profiles WHERE user_id = $1",
				user_id,
				timeout=self._timeout,
			)
		return _profile_from_row(row) if row else None

	async def get_by_handle(self, handle: str) -> Optional[RawProfile]:
		async with connection("profiles.get_by_handle") as conn:
			row = await conn.fetchrow(
				f"SELECT {_COLUMNS} FROM profiles WHERE lower(handle) = lower($1)",
				handle,
				timeout=self._timeout,
			)
		return _profile_from_row(row) if row else None

	async def search(self, predicate: CandidateFilter, limit: int, offset: int) -> list[RawProfile]:
		clauses: list[str] = []
		params: list[object] = []

		def _param(value: object) -> str:
			params.append(value)
			return f"${len(params)}"

		if predicate.exclude_ids:
			clauses.append(f"NOT (user_id::text = ANY({_param(list(predicate.exclude_ids))}::text[]))")
		if predicate.include_ids is not None:
			clauses.append(f"user_id::text = ANY({_param(list(predicate.include_ids))}::text[])")
		if predicate.discoverable_only:
			clauses.append("(visibility = 'public' OR COALESCE(btrim(handle), '') <> '')")
		order_by = "created_at, user_id"
		if predicate.text:
			pattern = _param(f"%{_escape_like(predicate.text)}%")
			identity = " OR ".join(f"{column} ILIKE {pattern}" for column in IDENTITY_TEXT_COLUMNS)
			name_order = "lower(COALESCE(display_name, '')) COLLATE \"C\", user_id"
			if predicate.scope is TextScope.IDENTITY:
				clauses.append(f"({identity})")
				exact = _param(predicate.text.casefold())
				order_by = (
					f"CASE WHEN lower(handle) = {exact} THEN 0 "
					f"WHEN handle ILIKE {pattern} THEN 1 ELSE 2 END, {name_order}"
				)
			else:
				gated = " OR ".join(f"{column} ILIKE {pattern}" for column in GATED_TEXT_COLUMNS)
				clauses.append(f"NOT COALESCE({identity}, false) AND ({gated})")
				order_by = name_order
		where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
		sql = f"""
			SELECT {_COLUMNS}
			FROM profiles
			{where}
			ORDER BY {order_by}
			LIMIT {_param(limit)} OFFSET {_param(offset)}
		"""
		async with connection("profiles.search") as conn:
			rows = await conn.fetch(sql, *params, timeout=self._timeout)
		return [_profile_from_row(row) for row in rows]


_MEMORY = MemoryProfileStore()


def get_profile_store() -> ProfileStore:
	if settings.store_backend == "memory":
		return _MEMORY
	return PostgresProfileStore()


def memory_store() -> MemoryProfileStore:
	return _MEMORY

