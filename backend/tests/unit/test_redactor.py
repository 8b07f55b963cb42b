from fitcircle.domain.profiles.models import RawProfile
from fitcircle.domain.relationships.models import RelationshipStatus
from fitcircle.domain.visibility.models import (
	FIELD_ATTRIBUTES,
	HIDDEN,
	ProfileField,
	VisibilityLevel,
)
from fitcircle.domain.visibility.presets import PRIVACY_FIRST_DEFAULTS
from fitcircle.domain.visibility.redactor import ProfileRedactor

CONNECTED = RelationshipStatus.CONNECTED
STRANGER = RelationshipStatus.NOT_CONNECTED


def _subject(**overrides) -> RawProfile:
	values = dict(
		user_id="00000000-0000-0000-0000-0000000000a1",
		handle="sam_lifts",
		display_name="Sam",
		visibility="public",
		full_name="Samantha Stone",
		picture="https://cdn.example/sam.png",
		city="Portland",
		state="OR",
		bio="Powerlifting and trail runs",
		age=31,
		weight=64.5,
		body_fat=None,
		fitness_level="advanced",
		goals=["deadlift 150kg"],
		badges=["100 workouts"],
		sports=["running"],
	)
	values.update(overrides)
	return RawProfile(**values)


def test_identity_fields_survive_redaction():
	redacted = ProfileRedactor().redact(_subject(), {}, STRANGER)
	assert redacted.user_id == "00000000-0000-0000-0000-0000000000a1"
	assert redacted.handle == "sam_lifts"
	assert redacted.display_name == "Sam"


def test_every_governed_attribute_is_present():
	redacted = ProfileRedactor().redact(_subject(), None, STRANGER)
	expected = {attr for field in ProfileField for attr in FIELD_ATTRIBUTES[field]}
	assert set(redacted.values) == expected
	assert redacted.hidden == frozenset(ProfileField)


def test_hidden_marker_differs_from_missing_value():
	settings = {ProfileField.BODY_FAT: VisibilityLevel.PUBLIC, ProfileField.WEIGHT: VisibilityLevel.PRIVATE}
	redacted = ProfileRedactor().redact(_subject(), settings, STRANGER)
	assert redacted.value("body_fat") is None
	assert redacted.value("weight") is HIDDEN
	assert redacted.visible_value("weight") is None


def test_city_governs_city_and_state_together():
	settings = {ProfileField.CITY: VisibilityLevel.CIRCLE}
	redactor = ProfileRedactor()
	stranger = redactor.redact(_subject(), settings, STRANGER)
	friend = redactor.redact(_subject(), settings, CONNECTED)
	assert stranger.value("city") is HIDDEN and stranger.value("state") is HIDDEN
	assert friend.value("city") == "Portland" and friend.value("state") == "OR"


def test_circle_fields_reveal_once_connected():
	redactor = ProfileRedactor()
	before = redactor.redact(_subject(), None, RelationshipStatus.PENDING_OUTGOING)
	after = redactor.redact(_subject(), None, CONNECTED)
	assert before.value("goals") is HIDDEN
	assert after.value("goals") == ["deadlift 150kg"]
	# private defaults stay hidden even for connections
	assert after.value("age") is HIDDEN


def test_missing_settings_match_explicit_defaults():
	redactor = ProfileRedactor()
	explicit = PRIVACY_FIRST_DEFAULTS.as_dict()
	for status in RelationshipStatus:
		assert redactor.redact(_subject(), None, status) == redactor.redact(_subject(), explicit, status)


def test_redaction_is_idempotent():
	redactor = ProfileRedactor()
	settings = {ProfileField.BADGES: VisibilityLevel.PUBLIC}
	once = redactor.redact(_subject(), settings, STRANGER)
	twice = redactor.redact(once, settings, STRANGER)
	assert twice == once


def test_reveal_is_the_unredacted_self_view():
	revealed = ProfileRedactor().reveal(_subject())
	assert revealed.hidden == frozenset()
	assert revealed.value("age") == 31
	assert revealed.value("full_name") == "Samantha Stone"
