"""Viewer-specific projection of a profile."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping, Optional, Protocol

from fitcircle.domain.relationships.models import RelationshipStatus
from fitcircle.domain.visibility.models import (
	FIELD_ATTRIBUTES,
	HIDDEN,
	DefaultVisibilityTable,
	FieldVisibilityMap,
	ProfileField,
)
from fitcircle.domain.visibility.policy import VisibilityPolicy
from fitcircle.domain.visibility.presets import PRIVACY_FIRST_DEFAULTS


class ProfileLike(Protocol):
	user_id: str
	handle: Optional[str]
	display_name: Optional[str]

	def value(self, attribute: str) -> Any: ...


@dataclass(frozen=True, slots=True)
class RedactedProfile:
	"""What one viewer may see of a subject.

	Identity (`user_id`, `handle`, `display_name`) is always present. Every
	governed attribute is present in `values`, holding either the source
	value (possibly None) or HIDDEN.
	"""

	user_id: str
	handle: Optional[str]
	display_name: Optional[str]
	values: Mapping[str, Any]
	hidden: frozenset[ProfileField]

	def value(self, attribute: str) -> Any:
		return self.values[attribute]

	def is_hidden(self, field: ProfileField) -> bool:
		return field in self.hidden

	def visible_value(self, attribute: str) -> Any:
		"""Source value when revealed, None when hidden or empty."""
		value = self.values.get(attribute)
		return None if value is HIDDEN else value


class ProfileRedactor:
	def __init__(
		self,
		policy: Optional[VisibilityPolicy] = None,
		*,
		defaults: DefaultVisibilityTable = PRIVACY_FIRST_DEFAULTS,
	) -> None:
		self._policy = policy or VisibilityPolicy(defaults)

	@property
	def policy(self) -> VisibilityPolicy:
		return self._policy

	def redact(
		self,
		profile: ProfileLike,
		settings: Optional[FieldVisibilityMap],
		status: RelationshipStatus,
	) -> RedactedProfile:
		"""Project `profile` for a viewer whose relationship is `status`.

		`settings` may be None when the subject never saved privacy settings;
		every field then uses its default tier. Accepts an already redacted
		profile, in which case the output is unchanged for the same status.
		"""
		values: dict[str, Any] = {}
		hidden: set[ProfileField] = set()
		for field in ProfileField:
			visible = self._policy.allows(field, settings, status)
			if not visible:
				hidden.add(field)
			for attribute in FIELD_ATTRIBUTES[field]:
				values[attribute] = profile.value(attribute) if visible else HIDDEN
		return RedactedProfile(
			user_id=profile.user_id,
			handle=profile.handle,
			display_name=profile.display_name,
			values=MappingProxyType(values),
			hidden=frozenset(hidden),
		)

	def reveal(self, profile: ProfileLike) -> RedactedProfile:
		"""The subject's own view: nothing is redacted."""
		values = {
			attribute: profile.value(attribute)
			for field in ProfileField
			for attribute in FIELD_ATTRIBUTES[field]
		}
		return RedactedProfile(
			user_id=profile.user_id,
			handle=profile.handle,
			display_name=profile.display_name,
			values=MappingProxyType(values),
			hidden=frozenset(),
		)
