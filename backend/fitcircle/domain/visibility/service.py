"""Self-service privacy settings and presets."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from fitcircle.domain.common.audit import append_event
from fitcircle.domain.visibility import schemas
from fitcircle.domain.visibility.exceptions import (
	InvalidVisibilityValue,
	PrivacyRateLimitExceeded,
	UnknownPresetError,
)
from fitcircle.domain.visibility.models import (
	DefaultVisibilityTable,
	ProfileField,
	VisibilityLevel,
)
from fitcircle.domain.visibility.presets import PRESET_DESCRIPTIONS, PRESETS, PRIVACY_FIRST_DEFAULTS
from fitcircle.domain.visibility.store import PrivacyStore, dump_levels, get_privacy_store
from fitcircle.infra import rate_limit
from fitcircle.infra.auth import AuthenticatedUser
from fitcircle.obs import metrics as obs_metrics
from fitcircle.settings import settings

logger = logging.getLogger(__name__)


def parse_updates(payload: Mapping[str, Any]) -> dict[ProfileField, VisibilityLevel]:
	"""Validate a partial settings map; raise on the first bad key or tier."""
	updates: dict[ProfileField, VisibilityLevel] = {}
	for key, value in payload.items():
		field = ProfileField.parse(key)
		if field is None or not isinstance(value, str):
			raise InvalidVisibilityValue(key, value)
		try:
			updates[field] = VisibilityLevel(value.strip().lower())
		except ValueError:
			raise InvalidVisibilityValue(key, value) from None
	return updates


def _to_schema(levels: Mapping[ProfileField, VisibilityLevel]) -> schemas.PrivacySettingsOut:
	return schemas.PrivacySettingsOut(
		settings=dump_levels(levels),
		fields=[
			schemas.PrivacyFieldOut(
				field=field.value,
				legacy_key=field.legacy_key,
				category=field.category,
				visibility=levels[field].value,
			)
			for field in ProfileField
		],
	)


class PrivacyService:
	def __init__(
		self,
		store: Optional[PrivacyStore] = None,
		*,
		defaults: DefaultVisibilityTable = PRIVACY_FIRST_DEFAULTS,
	) -> None:
		self._store = store or get_privacy_store()
		self._defaults = defaults

	def _effective(self, stored: Mapping[ProfileField, VisibilityLevel]) -> dict[ProfileField, VisibilityLevel]:
		levels = self._defaults.as_dict()
		levels.update(stored)
		return levels

	async def _current(self, user_id: str) -> dict[ProfileField, VisibilityLevel]:
		return self._effective(await self._store.get(user_id) or {})

	async def get_settings(self, auth_user: AuthenticatedUser) -> schemas.PrivacySettingsOut:
		return _to_schema(await self._current(str(auth_user.id)))

	async def update_settings(
		self,
		auth_user: AuthenticatedUser,
		payload: Mapping[str, Any],
	) -> schemas.PrivacySettingsOut:
		user_id = str(auth_user.id)
		try:
			updates = parse_updates(payload)
		except InvalidVisibilityValue as exc:
			obs_metrics.inc_privacy_reject()
			logger.info("privacy.update rejected field=%s", exc.field_key)
			raise
		return await self._write(user_id, updates, source="fields")

	async def apply_preset(self, auth_user: AuthenticatedUser, name: str) -> schemas.PrivacySettingsOut:
		preset = PRESETS.get(name)
		if preset is None:
			raise UnknownPresetError()
		return await self._write(str(auth_user.id), preset, source=f"preset:{name}")

	def list_presets(self) -> list[schemas.PresetOut]:
		return [
			schemas.PresetOut(name=name, description=PRESET_DESCRIPTIONS[name], settings=dump_levels(levels))
			for name, levels in PRESETS.items()
		]

	async def _write(
		self,
		user_id: str,
		updates: Mapping[ProfileField, VisibilityLevel],
		*,
		source: str,
	) -> schemas.PrivacySettingsOut:
		if not await rate_limit.allow("privacy", user_id, limit=settings.privacy_update_per_minute):
			raise PrivacyRateLimitExceeded("per_minute")
		# only explicit choices are persisted; unset fields keep following the defaults
		previous, stored = await self._store.merge(user_id, updates)
		before, levels = self._effective(previous), self._effective(stored)
		changed = sorted(field.value for field in updates if before[field] != levels[field])
		obs_metrics.inc_privacy_update(source.split(":", 1)[0])
		await append_event(
			"x:privacy.events",
			{"event": "privacy.updated", "user_id": user_id, "source": source, "changed": ",".join(changed)},
		)
		logger.info("privacy.update source=%s changed=%d", source, len(changed))
		return _to_schema(levels)
