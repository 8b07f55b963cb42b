"""Per-request resolution of a viewer's relationships."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from fitcircle.domain.relationships.models import (
	NOT_CONNECTED_VIEW,
	ConnectionStatus,
	RelationshipStatus,
	RelationshipView,
)
from fitcircle.domain.relationships.store import RelationshipStore


@dataclass(frozen=True, slots=True)
class ResolvedRelationships:
	"""A viewer's relationship map, loaded once per request.

	`blocked_set` holds every party of a rejected or blocked record and is
	used to drop candidates; `blocked_ids` narrows that to blocked records
	(either direction). Neither is ever surfaced as a status string.
	"""

	viewer_id: str
	views: Mapping[str, RelationshipView] = field(default_factory=dict)
	blocked_set: frozenset[str] = frozenset()
	blocked_ids: frozenset[str] = frozenset()

	def lookup(self, other_id: str) -> RelationshipView:
		return self.views.get(other_id, NOT_CONNECTED_VIEW)

	def status_for(self, other_id: str) -> RelationshipStatus:
		return self.lookup(other_id).status

	def connected_ids(self) -> list[str]:
		return [
			other_id
			for other_id, view in self.views.items()
			if view.status is RelationshipStatus.CONNECTED
		]

	def is_excluded(self, other_id: str) -> bool:
		return other_id in self.blocked_set

	def is_blocked(self, other_id: str) -> bool:
		return other_id in self.blocked_ids


class RelationshipResolver:
	def __init__(self, store: RelationshipStore) -> None:
		self._store = store

	async def resolve(self, viewer_id: str) -> ResolvedRelationships:
		"""Load every record touching `viewer_id`; store failures propagate."""
		records = await self._store.find_by_either_party(viewer_id)
		views: dict[str, RelationshipView] = {}
		excluded: set[str] = set()
		blocked: set[str] = set()
		for rel in records:
			other_id = rel.other_party(viewer_id)
			if rel.status in (ConnectionStatus.REJECTED, ConnectionStatus.BLOCKED):
				excluded.add(other_id)
				if rel.status is ConnectionStatus.BLOCKED:
					blocked.add(other_id)
				# keep the id so the record can still be deleted, status stays hidden
				views[other_id] = RelationshipView(RelationshipStatus.NOT_CONNECTED, rel.id)
				continue
			views[other_id] = RelationshipView(rel.status_for(viewer_id), rel.id)
		return ResolvedRelationships(
			viewer_id=viewer_id,
			views=views,
			blocked_set=frozenset(excluded),
			blocked_ids=frozenset(blocked),
		)
