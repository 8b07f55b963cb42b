"""Domain models for connections between users."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional


class ConnectionStatus(str, Enum):
	"""Stored states of a relationship record."""

	PENDING = "pending"
	ACCEPTED = "accepted"
	REJECTED = "rejected"
	BLOCKED = "blocked"


class RelationshipStatus(str, Enum):
	"""How a relationship looks from one viewer's side. Derived, never stored."""

	CONNECTED = "connected"
	PENDING_OUTGOING = "pending_outgoing"
	PENDING_INCOMING = "pending_incoming"
	NOT_CONNECTED = "not_connected"


@dataclass(slots=True)
class Relationship:
	"""One record per unordered user pair; direction kept for request display."""

	id: str
	requester_id: str
	addressee_id: str
	status: ConnectionStatus
	created_at: datetime
	updated_at: datetime

	@classmethod
	def from_record(cls, record) -> "Relationship":
		return cls(
			id=str(record["id"]),
			requester_id=str(record["requester_id"]),
			addressee_id=str(record["addressee_id"]),
			status=ConnectionStatus(record["status"]),
			created_at=record["created_at"],
			updated_at=record["updated_at"],
		)

	def involves(self, user_id: str) -> bool:
		return user_id in (self.requester_id, self.addressee_id)

	def other_party(self, user_id: str) -> str:
		if user_id == self.requester_id:
			return self.addressee_id
		if user_id == self.addressee_id:
			return self.requester_id
		raise ValueError("user is not a party to this relationship")

	def status_for(self, viewer_id: str) -> RelationshipStatus:
		if self.status is ConnectionStatus.ACCEPTED:
			return RelationshipStatus.CONNECTED
		if self.status is ConnectionStatus.PENDING:
			if viewer_id == self.requester_id:
				return RelationshipStatus.PENDING_OUTGOING
			return RelationshipStatus.PENDING_INCOMING
		return RelationshipStatus.NOT_CONNECTED


@dataclass(frozen=True, slots=True)
class RelationshipView:
	"""A viewer's status toward one other user plus the record id, if any."""

	status: RelationshipStatus
	relationship_id: Optional[str] = None


NOT_CONNECTED_VIEW = RelationshipView(status=RelationshipStatus.NOT_CONNECTED)


def pair_key(user_a: str, user_b: str) -> tuple[str, str]:
	"""Order-independent key for a user pair."""
	return (user_a, user_b) if user_a <= user_b else (user_b, user_a)
