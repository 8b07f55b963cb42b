"""Pydantic schemas for connections."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from fitcircle.domain.relationships.models import Relationship


class ConnectRequest(BaseModel):
	target_user_id: UUID = Field(..., description="User to connect with")


class RespondRequest(BaseModel):
	action: Literal["accept", "reject"]


class RelationshipOut(BaseModel):
	id: str
	requester_id: str
	addressee_id: str
	status: Literal["pending", "accepted", "rejected", "blocked"]
	created_at: datetime
	updated_at: datetime

	@classmethod
	def from_domain(cls, rel: Relationship) -> "RelationshipOut":
		return cls(
			id=rel.id,
			requester_id=rel.requester_id,
			addressee_id=rel.addressee_id,
			status=rel.status.value,
			created_at=rel.created_at,
			updated_at=rel.updated_at,
		)
