"""Visibility policy engine: tier + relationship status -> reveal or redact."""

from __future__ import annotations

from typing import Optional

from fitcircle.domain.relationships.models import RelationshipStatus
from fitcircle.domain.visibility.models import (
	DefaultVisibilityTable,
	FieldVisibilityMap,
	ProfileField,
	VisibilityLevel,
)
from fitcircle.domain.visibility.presets import PRIVACY_FIRST_DEFAULTS


def is_visible(level: VisibilityLevel, status: RelationshipStatus) -> bool:
	"""Decide whether another viewer may see a field at `level`.

	The subject's own view never reaches this function.
	"""
	if level == VisibilityLevel.PUBLIC:
		return True
	if level == VisibilityLevel.CIRCLE:
		return status == RelationshipStatus.CONNECTED
	return False


class VisibilityPolicy:
	"""Applies `is_visible` against a subject's settings and a default table."""

	def __init__(self, defaults: DefaultVisibilityTable = PRIVACY_FIRST_DEFAULTS) -> None:
		self._defaults = defaults

	@property
	def defaults(self) -> DefaultVisibilityTable:
		return self._defaults

	def level_for(self, field: ProfileField, settings: Optional[FieldVisibilityMap]) -> VisibilityLevel:
		if settings:
			level = settings.get(field)
			if level is not None:
				try:
					return VisibilityLevel(level)
				except ValueError:
					return VisibilityLevel.PRIVATE
		return self._defaults.level_for(field)

	def effective_levels(self, settings: Optional[FieldVisibilityMap]) -> dict[ProfileField, VisibilityLevel]:
		return {field: self.level_for(field, settings) for field in ProfileField}

	def allows(
		self,
		field: ProfileField,
		settings: Optional[FieldVisibilityMap],
		status: RelationshipStatus,
	) -> bool:
		return is_visible(self.level_for(field, settings), status)

	def visible_fields(
		self,
		settings: Optional[FieldVisibilityMap],
		status: RelationshipStatus,
	) -> frozenset[ProfileField]:
		return frozenset(field for field in ProfileField if self.allows(field, settings, status))
