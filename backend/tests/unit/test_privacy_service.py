import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from fitcircle.domain.visibility.exceptions import (
	InvalidVisibilityValue,
	PrivacyRateLimitExceeded,
	UnknownPresetError,
)
from fitcircle.domain.visibility.models import ProfileField, VisibilityLevel
from fitcircle.domain.visibility.presets import MAXIMUM_PRIVACY, PRIVACY_FIRST_DEFAULTS
from fitcircle.domain.visibility.service import PrivacyService
from fitcircle.domain.visibility.store import coerce_stored
from fitcircle.infra.auth import AuthenticatedUser
from fitcircle.settings import settings

USER = "00000000-0000-0000-0000-000000000301"
ME = AuthenticatedUser(id=USER)


@pytest.mark.asyncio
async def test_unset_settings_read_as_defaults():
	result = await PrivacyService().get_settings(ME)
	assert result.settings == {field.value: level.value for field, level in PRIVACY_FIRST_DEFAULTS.levels.items()}
	categories = {row.field: row.category for row in result.fields}
	assert categories["weight"] == "body"
	assert categories["badges"] == "achievements"


@pytest.mark.asyncio
async def test_partial_update_stores_only_the_fields_set(privacy, fake_redis):
	result = await PrivacyService().update_settings(ME, {"cityVisibility": "public", "age": "CIRCLE"})
	assert result.settings["city"] == "public"
	assert result.settings["age"] == "circle"
	assert result.settings["weight"] == "private"
	assert privacy.maps[USER] == {"city": "public", "age": "circle"}

	events = await fake_redis.xrange("x:privacy.events")
	assert events[-1][1]["changed"] == "age,city"


@pytest.mark.asyncio
async def test_changed_defaults_reach_fields_the_user_never_set(privacy):
	await PrivacyService().update_settings(ME, {"city": "public"})
	loosened = PRIVACY_FIRST_DEFAULTS.with_overrides({ProfileField.WEIGHT: VisibilityLevel.CIRCLE})
	result = await PrivacyService(defaults=loosened).get_settings(ME)
	assert result.settings["weight"] == "circle"
	assert result.settings["city"] == "public"


@pytest.mark.asyncio
async def test_sequential_partial_updates_accumulate(privacy):
	await privacy.seed({USER: {"cityVisibility": "circle", "bioVisibility": "public"}})
	service = PrivacyService()
	await service.update_settings(ME, {"city": "public"})
	result = await service.update_settings(ME, {"age": "public"})
	assert privacy.maps[USER] == {"city": "public", "bio": "public", "age": "public"}
	assert result.settings["bio"] == "public"


@pytest.mark.asyncio
async def test_audit_outage_does_not_fail_a_committed_update(privacy, fake_redis, monkeypatch):
	async def _down(*args, **kwargs):
		raise RedisConnectionError("redis unavailable")

	monkeypatch.setattr(fake_redis, "xadd", _down)
	result = await PrivacyService().update_settings(ME, {"city": "public"})
	assert result.settings["city"] == "public"
	assert privacy.maps[USER] == {"city": "public"}


@pytest.mark.asyncio
async def test_invalid_update_writes_nothing(privacy):
	service = PrivacyService()
	with pytest.raises(InvalidVisibilityValue) as exc:
		await service.update_settings(ME, {"city": "public", "age": "friends", "shoeSize": "public"})
	assert exc.value.field_key == "age"
	assert "age" in str(exc.value)
	assert USER not in privacy.maps


@pytest.mark.asyncio
async def test_unknown_field_is_named():
	with pytest.raises(InvalidVisibilityValue) as exc:
		await PrivacyService().update_settings(ME, {"shoeSize": "public"})
	assert exc.value.field_key == "shoeSize"


@pytest.mark.asyncio
async def test_non_string_tier_is_rejected():
	with pytest.raises(InvalidVisibilityValue):
		await PrivacyService().update_settings(ME, {"city": None})


@pytest.mark.asyncio
async def test_preset_replaces_every_tier():
	result = await PrivacyService().apply_preset(ME, "maximum_privacy")
	assert result.settings == {field.value: level.value for field, level in MAXIMUM_PRIVACY.items()}


@pytest.mark.asyncio
async def test_unknown_preset():
	with pytest.raises(UnknownPresetError):
		await PrivacyService().apply_preset(ME, "share_everything")


def test_presets_are_listed_with_descriptions():
	names = [preset.name for preset in PrivacyService().list_presets()]
	assert names == ["public_profile", "circle_only", "maximum_privacy"]


@pytest.mark.asyncio
async def test_updates_are_rate_limited(monkeypatch):
	monkeypatch.setattr(settings, "privacy_update_per_minute", 1)
	service = PrivacyService()
	await service.update_settings(ME, {"city": "public"})
	with pytest.raises(PrivacyRateLimitExceeded):
		await service.update_settings(ME, {"city": "private"})


def test_stored_maps_drop_unknown_keys_and_distrust_bad_values():
	levels = coerce_stored({"cityVisibility": "public", "legacyThing": "public", "age": "everyone"})
	assert levels == {ProfileField.CITY: VisibilityLevel.PUBLIC, ProfileField.AGE: VisibilityLevel.PRIVATE}
