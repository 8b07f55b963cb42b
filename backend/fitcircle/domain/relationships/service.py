"""Connection lifecycle: request, respond, block, remove and list."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from fitcircle.domain.profiles.store import ProfileStore, get_profile_store
from fitcircle.domain.relationships import audit
from fitcircle.domain.relationships.exceptions import (
	AlreadyConnectedError,
	BlockedError,
	ConnectCooldownError,
	ConnectRateLimitExceeded,
	DuplicateRelationship,
	RelationshipConflict,
	RelationshipForbidden,
	RelationshipNotFound,
	RelationshipStateError,
	SelfTargetError,
)
from fitcircle.domain.relationships.models import ConnectionStatus, Relationship
from fitcircle.domain.relationships.store import RelationshipStore, get_relationship_store
from fitcircle.infra import rate_limit
from fitcircle.infra.auth import AuthenticatedUser
from fitcircle.settings import settings

logger = logging.getLogger(__name__)

# a lost race is re-read and re-applied once
_ATTEMPTS = 2


class ConnectionService:
	def __init__(
		self,
		store: Optional[RelationshipStore] = None,
		profiles: Optional[ProfileStore] = None,
		*,
		rejected_cooldown_seconds: Optional[int] = None,
	) -> None:
		self._store = store or get_relationship_store()
		self._profiles = profiles or get_profile_store()
		if rejected_cooldown_seconds is None:
			rejected_cooldown_seconds = settings.connect_rejected_cooldown_seconds
		self._cooldown = max(0, int(rejected_cooldown_seconds))

	async def _enforce_rate_limit(self, user_id: str, kind: str = "connect") -> None:
		if not await rate_limit.allow(kind, user_id, limit=settings.connect_per_minute):
			audit.inc_connect("rate_limited")
			raise ConnectRateLimitExceeded("per_minute")

	async def _ensure_target(self, target_id: str) -> None:
		if await self._profiles.get(target_id) is None:
			raise RelationshipNotFound("user_missing")

	async def connect(self, auth_user: AuthenticatedUser, target_id: str) -> Relationship:
		"""Request a connection, or accept the target's pending request to the viewer."""
		viewer_id = str(auth_user.id)
		target_id = str(target_id)
		if viewer_id == target_id:
			audit.inc_connect("self_target")
			raise SelfTargetError()
		await self._enforce_rate_limit(viewer_id)
		await self._ensure_target(target_id)

		for attempt in range(_ATTEMPTS):
			existing = await self._store.find_between(viewer_id, target_id)
			if existing is None:
				try:
					created = await self._store.create(viewer_id, target_id)
				except DuplicateRelationship:
					logger.info("connect.race viewer=%s attempt=%d", viewer_id, attempt)
					continue
				return await self._finish_connect("requested", created, viewer_id)
			updated, outcome = await self._apply_existing(existing, viewer_id, target_id)
			if updated is not None:
				return await self._finish_connect(outcome, updated, viewer_id)
			logger.info("connect.race viewer=%s attempt=%d", viewer_id, attempt)
		audit.inc_connect("conflict")
		raise RelationshipConflict()

	async def _apply_existing(
		self,
		existing: Relationship,
		viewer_id: str,
		target_id: str,
	) -> tuple[Optional[Relationship], str]:
		status = existing.status
		if status is ConnectionStatus.ACCEPTED:
			audit.inc_connect("already_connected")
			raise AlreadyConnectedError("already_connected")
		if status is ConnectionStatus.BLOCKED:
			audit.inc_connect("blocked")
			raise BlockedError()
		if status is ConnectionStatus.PENDING:
			if existing.requester_id == viewer_id:
				audit.inc_connect("already_pending")
				raise AlreadyConnectedError("already_pending")
			accepted = await self._store.update(
				existing.id,
				expected=ConnectionStatus.PENDING,
				status=ConnectionStatus.ACCEPTED,
			)
			return accepted, "mutual"
		# rejected: reopen the same record with the viewer as requester
		if existing.requester_id == viewer_id and self._cooldown:
			elapsed = (datetime.now(timezone.utc) - existing.updated_at).total_seconds()
			if elapsed < self._cooldown:
				audit.inc_connect("cooldown")
				raise ConnectCooldownError(retry_after=int(self._cooldown - elapsed) + 1)
		reopened = await self._store.update(
			existing.id,
			expected=ConnectionStatus.REJECTED,
			status=ConnectionStatus.PENDING,
			requester_id=viewer_id,
			addressee_id=target_id,
		)
		return reopened, "reopened"

	async def _finish_connect(self, outcome: str, rel: Relationship, viewer_id: str) -> Relationship:
		audit.inc_connect(outcome)
		await audit.record_transition(f"connect.{outcome}", rel, actor_id=viewer_id)
		logger.info("connect.request outcome=%s relationship=%s", outcome, rel.id)
		return rel

	async def respond(self, auth_user: AuthenticatedUser, relationship_id: str, *, accept: bool) -> Relationship:
		viewer_id = str(auth_user.id)
		rel = await self._store.get(str(relationship_id))
		if rel is None or not rel.involves(viewer_id):
			raise RelationshipNotFound()
		if rel.addressee_id != viewer_id:
			raise RelationshipForbidden("not_addressee")
		if rel.status is not ConnectionStatus.PENDING:
			raise RelationshipStateError("not_pending")
		new_status = ConnectionStatus.ACCEPTED if accept else ConnectionStatus.REJECTED
		updated = await self._store.update(rel.id, expected=ConnectionStatus.PENDING, status=new_status)
		if updated is None:
			raise RelationshipStateError("not_pending")
		await audit.record_transition("connect.accepted" if accept else "connect.rejected", updated, actor_id=viewer_id)
		logger.info("connect.respond status=%s relationship=%s", new_status.value, updated.id)
		return updated

	async def block(self, auth_user: AuthenticatedUser, target_id: str) -> Relationship:
		"""Block the target; the blocker becomes the record's requester."""
		viewer_id = str(auth_user.id)
		target_id = str(target_id)
		if viewer_id == target_id:
			raise SelfTargetError()
		await self._enforce_rate_limit(viewer_id, kind="block")
		await self._ensure_target(target_id)

		for _ in range(_ATTEMPTS):
			existing = await self._store.find_between(viewer_id, target_id)
			if existing is None:
				try:
					blocked = await self._store.create(viewer_id, target_id, ConnectionStatus.BLOCKED)
				except DuplicateRelationship:
					continue
			elif existing.status is ConnectionStatus.BLOCKED:
				if existing.requester_id == viewer_id:
					return existing
				raise BlockedError()
			else:
				blocked = await self._store.update(
					existing.id,
					expected=existing.status,
					status=ConnectionStatus.BLOCKED,
					requester_id=viewer_id,
					addressee_id=target_id,
				)
				if blocked is None:
					continue
			await audit.record_transition("connect.blocked", blocked, actor_id=viewer_id)
			logger.info("connect.block relationship=%s", blocked.id)
			return blocked
		raise RelationshipConflict()

	async def remove(self, auth_user: AuthenticatedUser, target_id: str) -> Relationship:
		"""Delete the pair record whatever its status; blocked records only by the blocker."""
		viewer_id = str(auth_user.id)
		target_id = str(target_id)
		if viewer_id == target_id:
			raise SelfTargetError()
		existing = await self._store.find_between(viewer_id, target_id)
		if existing is None:
			raise RelationshipNotFound()
		if existing.status is ConnectionStatus.BLOCKED and existing.requester_id != viewer_id:
			raise RelationshipForbidden("not_blocker")
		if not await self._store.delete(existing.id):
			raise RelationshipNotFound()
		await audit.log_relationship_event(
			"connect.deleted",
			{
				"relationship_id": existing.id,
				"actor_id": viewer_id,
				"previous_status": existing.status.value,
			},
		)
		audit.inc_connect("deleted")
		logger.info("connect.delete relationship=%s previous=%s", existing.id, existing.status.value)
		return existing

	async def list_connections(
		self,
		auth_user: AuthenticatedUser,
		status: ConnectionStatus = ConnectionStatus.ACCEPTED,
	) -> list[Relationship]:
		viewer_id = str(auth_user.id)
		records = await self._store.find_by_either_party(viewer_id)
		rows = [rel for rel in records if rel.status is status]
		if status is ConnectionStatus.BLOCKED:
			rows = [rel for rel in rows if rel.requester_id == viewer_id]
		rows.sort(key=lambda rel: (rel.updated_at, rel.id), reverse=True)
		return rows

	async def list_requests(self, auth_user: AuthenticatedUser) -> list[Relationship]:
		"""Incoming pending requests, oldest first."""
		viewer_id = str(auth_user.id)
		records = await self._store.find_by_either_party(viewer_id)
		rows = [
			rel
			for rel in records
			if rel.status is ConnectionStatus.PENDING and rel.addressee_id == viewer_id
		]
		rows.sort(key=lambda rel: (rel.created_at, rel.id))
		return rows
