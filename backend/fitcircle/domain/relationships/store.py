"""Relationship store: one record per unordered user pair."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Iterable, Optional, Protocol
from uuid import uuid4

import asyncpg

from fitcircle.domain.common.store import connection
from fitcircle.domain.relationships.exceptions import DuplicateRelationship
from fitcircle.domain.relationships.models import ConnectionStatus, Relationship, pair_key
from fitcircle.settings import settings


class RelationshipStore(Protocol):
	async def find_by_either_party(self, user_id: str) -> list[Relationship]: ...

	async def find_between(self, user_a: str, user_b: str) -> Optional[Relationship]: ...

	async def get(self, relationship_id: str) -> Optional[Relationship]: ...

	async def create(
		self,
		requester_id: str,
		addressee_id: str,
		status: ConnectionStatus = ConnectionStatus.PENDING,
	) -> Relationship: ...

	async def update(
		self,
		relationship_id: str,
		*,
		expected: ConnectionStatus,
		status: ConnectionStatus,
		requester_id: Optional[str] = None,
		addressee_id: Optional[str] = None,
	) -> Optional[Relationship]: ...

	async def delete(self, relationship_id: str) -> bool: ...


def _now() -> datetime:
	return datetime.now(timezone.utc)


class MemoryRelationshipStore:
	"""In-process store used for local runs and tests."""

	def __init__(self) -> None:
		self._lock = asyncio.Lock()
		self.records: dict[str, Relationship] = {}
		self._pairs: dict[tuple[str, str], str] = {}

	async def reset(self) -> None:
		async with self._lock:
			self.records.clear()
			self._pairs.clear()

	async def seed(self, relationships: Iterable[Relationship]) -> None:
		async with self._lock:
			self.records.clear()
			self._pairs.clear()
			for rel in relationships:
				key = pair_key(rel.requester_id, rel.addressee_id)
				if key in self._pairs:
					raise DuplicateRelationship()
				self.records[rel.id] = rel
				self._pairs[key] = rel.id

	@staticmethod
	def _copy(rel: Relationship) -> Relationship:
		return Relationship(
			id=rel.id,
			requester_id=rel.requester_id,
			addressee_id=rel.addressee_id,
			status=rel.status,
			created_at=rel.created_at,
			updated_at=rel.updated_at,
		)

	async def find_by_either_party(self, user_id: str) -> list[Relationship]:
		async with self._lock:
			return [self._copy(rel) for rel in self.records.values() if rel.involves(user_id)]

	async def find_between(self, user_a: str, user_b: str) -> Optional[Relationship]:
		async with self._lock:
			rel_id = self._pairs.get(pair_key(user_a, user_b))
			return self._copy(self.records[rel_id]) if rel_id else None

	async def get(self, relationship_id: str) -> Optional[Relationship]:
		async with self._lock:
			rel = self.records.get(relationship_id)
			return self._copy(rel) if rel else None

	async def create(
		self,
		requester_id: str,
		addressee_id: str,
		status: ConnectionStatus = ConnectionStatus.PENDING,
	) -> Relationship:
		async with self._lock:
			key = pair_key(requester_id, addressee_id)
			if key in self._pairs:
				raise DuplicateRelationship()
			now = _now()
			rel = Relationship(
				id=str(uuid4()),
				requester_id=requester_id,
				addressee_id=addressee_id,
				status=status,
				created_at=now,
				updated_at=now,
			)
			self.records[rel.id] = rel
			self._pairs[key] = rel.id
			return self._copy(rel)

	async def update(
		self,
		relationship_id: str,
		*,
		expected: ConnectionStatus,
		status: ConnectionStatus,
		requester_id: Optional[str] = None,
		addressee_id: Optional[str] = None,
	) -> Optional[Relationship]:
		async with self._lock:
			rel = self.records.get(relationship_id)
			if rel is None or rel.status is not expected:
				return None
			rel.status = status
			if requester_id is not None:
				rel.requester_id = requester_id
			if addressee_id is not None:
				rel.addressee_id = addressee_id
			rel.updated_at = _now()
			return self._copy(rel)

	async def delete(self, relationship_id: str) -> bool:
		async with self._lock:
			rel = self.records.pop(relationship_id, None)
			if rel is None:
				return False
			self._pairs.pop(pair_key(rel.requester_id, rel.addressee_id), None)
			return True


# Pair uniqueness lives in the unique index on (LEAST, GREATEST) of the two ids.
_COLUMNS = "id, requester_id, addressee_id, status, created_at, updated_at"


class PostgresRelationshipStore:
	def __init__(self, *, timeout: Optional[float] = None) -> None:
		self._timeout = timeout or settings.store_timeout_seconds

	async def find_by_either_party(self, user_id: str) -> list[Relationship]:
		async with connection("relationships.find_by_either_party") as conn:
			rows = await conn.fetch(
				f"""
				SELECT {_COLUMNS}
				FROM relationships
				WHERE requester_id = $1 OR addressee_id = $1
				""",
				user_id,
				timeout=self._timeout,
			)
		return [Relationship.from_record(row) for row in rows]

	async def find_between(self, user_a: str, user_b: str) -> Optional[Relationship]:
		async with connection("relationships.find_between") as conn:
			row = await conn.fetchrow(
				f"""
				SELECT {_COLUMNS}
				FROM relationships
				WHERE (requester_id = $1 AND addressee_id = $2)
					OR (requester_id = $2 AND addressee_id = $1)
				""",
				user_a,
				user_b,
				timeout=self._timeout,
			)
		return Relationship.from_record(row) if row else None

	async def get(self, relationship_id: str) -> Optional[Relationship]:
		async with connection("relationships.get") as conn:
			row = await conn.fetchrow(
				f"SELECT {_COLUMNS} FROM relationships WHERE id = $1",
				relationship_id,
				timeout=self._timeout,
			)
		return Relationship.from_record(row) if row else None

	async def create(
		self,
		requester_id: str,
		addressee_id: str,
		status: ConnectionStatus = ConnectionStatus.PENDING,
	) -> Relationship:
		async with connection("relationships.create") as conn:
			try:
				row = await conn.fetchrow(
					f"""
					INSERT INTO relationships (id, requester_id, addressee_id, status)
					VALUES ($1, $2, $3, $4)
					RETURNING {_COLUMNS}
					""",
					uuid4(),
					requester_id,
					addressee_id,
					status.value,
					timeout=self._timeout,
				)
			except asyncpg.UniqueViolationError as exc:
				raise DuplicateRelationship() from exc
		return Relationship.from_record(row)

	async def update(
		self,
		relationship_id: str,
		*,
		expected: ConnectionStatus,
		status: ConnectionStatus,
		requester_id: Optional[str] = None,
		addressee_id: Optional[str] = None,
	) -> Optional[Relationship]:
		async with connection("relationships.update") as conn:
			row = await conn.fetchrow(
				f"""
				UPDATE relationships
				SET status = $3,
					requester_id = COALESCE($4::uuid, requester_id),
					addressee_id = COALESCE($5::uuid, addressee_id),
					updated_at = NOW()
				WHERE id = $1 AND status = $2
				RETURNING {_COLUMNS}
				""",
				relationship_id,
				expected.value,
				status.value,
				requester_id,
				addressee_id,
				timeout=self._timeout,
			)
		return Relationship.from_record(row) if row else None

	async def delete(self, relationship_id: str) -> bool:
		async with connection("relationships.delete") as conn:
			result = await conn.execute(
				"DELETE FROM relationships WHERE id = $1",
				relationship_id,
				timeout=self._timeout,
			)
		return result.endswith(" 1")


_MEMORY = MemoryRelationshipStore()


def get_relationship_store() -> RelationshipStore:
	if settings.store_backend == "memory":
		return _MEMORY
	return PostgresRelationshipStore()


def memory_store() -> MemoryRelationshipStore:
	return _MEMORY
