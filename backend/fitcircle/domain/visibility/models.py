"""Profile fields, visibility tiers and the default tier table."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional


class VisibilityLevel(str, Enum):
	"""Visibility tiers, ordered from least to most restrictive."""

	PUBLIC = "public"
	CIRCLE = "circle"
	PRIVATE = "private"

	@property
	def rank(self) -> int:
		return _LEVEL_RANK[self]

	# str ordering would be alphabetical; tiers compare by restrictiveness.
	def __lt__(self, other: object) -> bool:
		if not isinstance(other, VisibilityLevel):
			return NotImplemented
		return self.rank < other.rank

	def __le__(self, other: object) -> bool:
		if not isinstance(other, VisibilityLevel):
			return NotImplemented
		return self.rank <= other.rank

	def __gt__(self, other: object) -> bool:
		if not isinstance(other, VisibilityLevel):
			return NotImplemented
		return self.rank > other.rank

	def __ge__(self, other: object) -> bool:
		if not isinstance(other, VisibilityLevel):
			return NotImplemented
		return self.rank >= other.rank


_LEVEL_RANK = {
	VisibilityLevel.PUBLIC: 0,
	VisibilityLevel.CIRCLE: 1,
	VisibilityLevel.PRIVATE: 2,
}


class ProfileField(str, Enum):
	"""The closed set of profile fields a subject can scope.

	Adding a member requires a matching entry in FIELD_ATTRIBUTES,
	FIELD_CATEGORIES and every DefaultVisibilityTable; the table refuses
	to build otherwise.
	"""

	NAME = "name"
	PICTURE = "picture"
	CITY = "city"
	AGE = "age"
	BIO = "bio"
	WEIGHT = "weight"
	BODY_FAT = "body_fat"
	FITNESS_LEVEL = "fitness_level"
	GOALS = "goals"
	LIMITATIONS = "limitations"
	WORKOUT_HISTORY = "workout_history"
	CAPABILITIES = "capabilities"
	PERSONAL_RECORDS = "personal_records"
	BADGES = "badges"
	SPORTS = "sports"

	@property
	def legacy_key(self) -> str:
		"""camelCase settings key used by older clients (`cityVisibility`)."""
		return _LEGACY_KEYS[self]

	@property
	def attributes(self) -> tuple[str, ...]:
		return FIELD_ATTRIBUTES[self]

	@property
	def category(self) -> str:
		return FIELD_CATEGORIES[self]

	@classmethod
	def parse(cls, key: str) -> Optional["ProfileField"]:
		"""Accept `city`, `cityVisibility` or `city_visibility`; None when unknown."""
		if not isinstance(key, str):
			return None
		text = key.strip()
		field = _KEY_INDEX.get(text) or _KEY_INDEX.get(text.lower())
		if field is None and text.lower().endswith("_visibility"):
			field = _KEY_INDEX.get(text.lower()[: -len("_visibility")])
		return field


_LEGACY_KEYS = {
	ProfileField.NAME: "nameVisibility",
	ProfileField.PICTURE: "profilePictureVisibility",
	ProfileField.CITY: "cityVisibility",
	ProfileField.AGE: "ageVisibility",
	ProfileField.BIO: "bioVisibility",
	ProfileField.WEIGHT: "weightVisibility",
	ProfileField.BODY_FAT: "bodyFatVisibility",
	ProfileField.FITNESS_LEVEL: "fitnessLevelVisibility",
	ProfileField.GOALS: "goalsVisibility",
	ProfileField.LIMITATIONS: "limitationsVisibility",
	ProfileField.WORKOUT_HISTORY: "workoutHistoryVisibility",
	ProfileField.CAPABILITIES: "capabilitiesVisibility",
	ProfileField.PERSONAL_RECORDS: "personalRecordsVisibility",
	ProfileField.BADGES: "badgesVisibility",
	ProfileField.SPORTS: "sportsVisibility",
}

# Raw profile attributes each field governs.
FIELD_ATTRIBUTES: Mapping[ProfileField, tuple[str, ...]] = MappingProxyType(
	{
		ProfileField.NAME: ("full_name",),
		ProfileField.PICTURE: ("picture",),
		ProfileField.CITY: ("city", "state"),
		ProfileField.AGE: ("age",),
		ProfileField.BIO: ("bio",),
		ProfileField.WEIGHT: ("weight",),
		ProfileField.BODY_FAT: ("body_fat",),
		ProfileField.FITNESS_LEVEL: ("fitness_level",),
		ProfileField.GOALS: ("goals",),
		ProfileField.LIMITATIONS: ("limitations",),
		ProfileField.WORKOUT_HISTORY: ("workout_history",),
		ProfileField.CAPABILITIES: ("capabilities",),
		ProfileField.PERSONAL_RECORDS: ("personal_records",),
		ProfileField.BADGES: ("badges",),
		ProfileField.SPORTS: ("sports",),
	}
)

FIELD_CATEGORIES: Mapping[ProfileField, str] = MappingProxyType(
	{
		ProfileField.NAME: "personal",
		ProfileField.PICTURE: "personal",
		ProfileField.CITY: "personal",
		ProfileField.AGE: "personal",
		ProfileField.BIO: "personal",
		ProfileField.WEIGHT: "body",
		ProfileField.BODY_FAT: "body",
		ProfileField.FITNESS_LEVEL: "fitness",
		ProfileField.GOALS: "fitness",
		ProfileField.LIMITATIONS: "fitness",
		ProfileField.WORKOUT_HISTORY: "fitness",
		ProfileField.CAPABILITIES: "fitness",
		ProfileField.PERSONAL_RECORDS: "achievements",
		ProfileField.BADGES: "achievements",
		ProfileField.SPORTS: "achievements",
	}
)

_KEY_INDEX: dict[str, ProfileField] = {}
for _field in ProfileField:
	_KEY_INDEX[_field.value] = _field
	_KEY_INDEX[_LEGACY_KEYS[_field]] = _field
	_KEY_INDEX[_LEGACY_KEYS[_field].lower()] = _field
del _field


# Per-field tiers chosen by a subject; absent keys fall back to the defaults.
FieldVisibilityMap = Mapping[ProfileField, VisibilityLevel]


@dataclass(frozen=True, slots=True)
class DefaultVisibilityTable:
	"""Immutable per-field default tiers handed to the policy engine."""

	levels: Mapping[ProfileField, VisibilityLevel]

	def __post_init__(self) -> None:
		missing = [field.value for field in ProfileField if field not in self.levels]
		if missing:
			raise ValueError(f"default table missing fields: {', '.join(missing)}")
		frozen = {ProfileField(field): VisibilityLevel(level) for field, level in self.levels.items()}
		object.__setattr__(self, "levels", MappingProxyType(frozen))

	def level_for(self, field: ProfileField) -> VisibilityLevel:
		return self.levels[field]

	def with_overrides(self, overrides: FieldVisibilityMap) -> "DefaultVisibilityTable":
		merged = dict(self.levels)
		merged.update(overrides)
		return DefaultVisibilityTable(merged)

	def as_dict(self) -> dict[ProfileField, VisibilityLevel]:
		return dict(self.levels)


class _Hidden:
	"""Marker for a field the viewer may not see; distinct from None (no value)."""

	__slots__ = ()
	_instance: Optional["_Hidden"] = None

	def __new__(cls) -> "_Hidden":
		if cls._instance is None:
			cls._instance = super().__new__(cls)
		return cls._instance

	def __repr__(self) -> str:
		return "HIDDEN"

	def __bool__(self) -> bool:
		return False

	def __reduce__(self) -> str:
		return "HIDDEN"


HIDDEN = _Hidden()


def is_hidden(value: Any) -> bool:
	return value is HIDDEN
