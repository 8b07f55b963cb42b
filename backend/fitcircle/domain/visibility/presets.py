"""Default tier table and the named presets offered in privacy settings."""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping

from fitcircle.domain.visibility.models import (
	DefaultVisibilityTable,
	FieldVisibilityMap,
	ProfileField,
	VisibilityLevel,
)

PUBLIC = VisibilityLevel.PUBLIC
CIRCLE = VisibilityLevel.CIRCLE
PRIVATE = VisibilityLevel.PRIVATE

# Privacy-first: a subject who never opened privacy settings shares
# identity-adjacent fields with their circle only and nothing publicly.
PRIVACY_FIRST_DEFAULTS = DefaultVisibilityTable(
	{
		ProfileField.NAME: CIRCLE,
		ProfileField.PICTURE: CIRCLE,
		ProfileField.CITY: PRIVATE,
		ProfileField.AGE: PRIVATE,
		ProfileField.BIO: CIRCLE,
		ProfileField.WEIGHT: PRIVATE,
		ProfileField.BODY_FAT: PRIVATE,
		ProfileField.FITNESS_LEVEL: PRIVATE,
		ProfileField.GOALS: CIRCLE,
		ProfileField.LIMITATIONS: PRIVATE,
		ProfileField.WORKOUT_HISTORY: CIRCLE,
		ProfileField.CAPABILITIES: PRIVATE,
		ProfileField.PERSONAL_RECORDS: CIRCLE,
		ProfileField.BADGES: CIRCLE,
		ProfileField.SPORTS: CIRCLE,
	}
)

PUBLIC_PROFILE: FieldVisibilityMap = MappingProxyType(
	{
		ProfileField.NAME: PUBLIC,
		ProfileField.PICTURE: PUBLIC,
		ProfileField.CITY: PUBLIC,
		ProfileField.AGE: PRIVATE,
		ProfileField.BIO: PUBLIC,
		ProfileField.WEIGHT: PRIVATE,
		ProfileField.BODY_FAT: PRIVATE,
		ProfileField.FITNESS_LEVEL: PUBLIC,
		ProfileField.GOALS: PUBLIC,
		ProfileField.LIMITATIONS: PRIVATE,
		ProfileField.WORKOUT_HISTORY: PUBLIC,
		ProfileField.CAPABILITIES: PRIVATE,
		ProfileField.PERSONAL_RECORDS: PUBLIC,
		ProfileField.BADGES: PUBLIC,
		ProfileField.SPORTS: PUBLIC,
	}
)

CIRCLE_ONLY: FieldVisibilityMap = MappingProxyType(
	{
		ProfileField.NAME: PUBLIC,
		ProfileField.PICTURE: PUBLIC,
		ProfileField.CITY: CIRCLE,
		ProfileField.AGE: CIRCLE,
		ProfileField.BIO: CIRCLE,
		ProfileField.WEIGHT: CIRCLE,
		ProfileField.BODY_FAT: PRIVATE,
		ProfileField.FITNESS_LEVEL: CIRCLE,
		ProfileField.GOALS: CIRCLE,
		ProfileField.LIMITATIONS: CIRCLE,
		ProfileField.WORKOUT_HISTORY: CIRCLE,
		ProfileField.CAPABILITIES: CIRCLE,
		ProfileField.PERSONAL_RECORDS: CIRCLE,
		ProfileField.BADGES: PUBLIC,
		ProfileField.SPORTS: PUBLIC,
	}
)

MAXIMUM_PRIVACY: FieldVisibilityMap = MappingProxyType(
	{
		ProfileField.NAME: CIRCLE,
		ProfileField.PICTURE: CIRCLE,
		ProfileField.CITY: PRIVATE,
		ProfileField.AGE: PRIVATE,
		ProfileField.BIO: PRIVATE,
		ProfileField.WEIGHT: PRIVATE,
		ProfileField.BODY_FAT: PRIVATE,
		ProfileField.FITNESS_LEVEL: PRIVATE,
		ProfileField.GOALS: PRIVATE,
		ProfileField.LIMITATIONS: PRIVATE,
		ProfileField.WORKOUT_HISTORY: PRIVATE,
		ProfileField.CAPABILITIES: PRIVATE,
		ProfileField.PERSONAL_RECORDS: PRIVATE,
		ProfileField.BADGES: CIRCLE,
		ProfileField.SPORTS: PRIVATE,
	}
)

PRESETS: Mapping[str, FieldVisibilityMap] = MappingProxyType(
	{
		"public_profile": PUBLIC_PROFILE,
		"circle_only": CIRCLE_ONLY,
		"maximum_privacy": MAXIMUM_PRIVACY,
	}
)

PRESET_DESCRIPTIONS: Mapping[str, str] = MappingProxyType(
	{
		"public_profile": "Share most info publicly",
		"circle_only": "Share with circle members",
		"maximum_privacy": "Keep most info private",
	}
)
