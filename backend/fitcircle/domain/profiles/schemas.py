"""Wire shapes for redacted profiles."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from fitcircle.domain.relationships.models import RelationshipView
from fitcircle.domain.visibility.models import HIDDEN
from fitcircle.domain.visibility.redactor import RedactedProfile

# JSON stand-in for the hidden marker; null stays "no value"
HIDDEN_JSON: dict[str, bool] = {"hidden": True}


def serialize_values(profile: RedactedProfile) -> dict[str, Any]:
	return {
		attribute: (dict(HIDDEN_JSON) if value is HIDDEN else value)
		for attribute, value in profile.values.items()
	}


class ProfileCardOut(BaseModel):
	id: str
	handle: Optional[str] = None
	display_name: str
	fields: dict[str, Any]
	hidden_fields: list[str] = Field(default_factory=list)
	relationship_status: str
	relationship_id: Optional[str] = None

	@classmethod
	def build(cls, profile: RedactedProfile, view: RelationshipView, **extra: Any) -> "ProfileCardOut":
		return cls(
			id=profile.user_id,
			handle=profile.handle,
			display_name=profile.display_name or profile.handle or "User",
			fields=serialize_values(profile),
			hidden_fields=sorted(field.value for field in profile.hidden),
			relationship_status=view.status.value,
			relationship_id=view.relationship_id,
			**extra,
		)


class ProfilePreviewOut(ProfileCardOut):
	is_self: bool = False
	can_connect: bool = False
