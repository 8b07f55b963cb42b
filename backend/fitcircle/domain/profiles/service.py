"""Single-profile preview for a viewer."""

from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from fitcircle.domain.common.store import join
from fitcircle.domain.profiles.exceptions import ProfileNotFound
from fitcircle.domain.profiles.models import RawProfile
from fitcircle.domain.profiles.schemas import ProfilePreviewOut
from fitcircle.domain.profiles.store import ProfileStore, get_profile_store
from fitcircle.domain.relationships.models import NOT_CONNECTED_VIEW, RelationshipStatus
from fitcircle.domain.relationships.resolver import RelationshipResolver
from fitcircle.domain.relationships.store import RelationshipStore, get_relationship_store
from fitcircle.domain.visibility.redactor import ProfileRedactor
from fitcircle.domain.visibility.store import PrivacyStore, get_privacy_store
from fitcircle.infra.auth import AuthenticatedUser
from fitcircle.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


class ProfilePreviewService:
	def __init__(
		self,
		profiles: Optional[ProfileStore] = None,
		relationships: Optional[RelationshipStore] = None,
		privacy: Optional[PrivacyStore] = None,
		*,
		redactor: Optional[ProfileRedactor] = None,
	) -> None:
		self._profiles = profiles or get_profile_store()
		self._resolver = RelationshipResolver(relationships or get_relationship_store())
		self._privacy = privacy or get_privacy_store()
		self._redactor = redactor or ProfileRedactor()

	async def _lookup(self, identifier: str) -> Optional[RawProfile]:
		text = identifier.strip()
		try:
			user_id = str(UUID(text))
		except ValueError:
			handle = text.lstrip("@")
			return await self._profiles.get_by_handle(handle) if handle else None
		return await self._profiles.get(user_id)

	async def preview(self, auth_user: AuthenticatedUser, identifier: str) -> ProfilePreviewOut:
		viewer_id = str(auth_user.id)
		subject = await self._lookup(identifier)
		if subject is None:
			raise ProfileNotFound()

		if subject.user_id == viewer_id:
			obs_metrics.inc_profile_preview("self")
			return ProfilePreviewOut.build(self._redactor.reveal(subject), NOT_CONNECTED_VIEW, is_self=True)

		resolved, settings_map = await join(
			self._resolver.resolve(viewer_id),
			self._privacy.get(subject.user_id),
		)
		if resolved.is_blocked(subject.user_id):
			logger.info("profile.preview hidden reason=blocked")
			raise ProfileNotFound()

		view = resolved.lookup(subject.user_id)
		redacted = self._redactor.redact(subject, settings_map, view.status)
		obs_metrics.inc_profile_preview(view.status.value)
		obs_metrics.inc_fields_redacted("preview", len(redacted.hidden))
		return ProfilePreviewOut.build(
			redacted,
			view,
			can_connect=view.status is RelationshipStatus.NOT_CONNECTED,
		)
