"""Service layer for profile discovery."""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from typing import Optional

from fitcircle.domain.discovery import ranking, schemas
from fitcircle.domain.profiles.models import RawProfile
from fitcircle.domain.profiles.schemas import ProfileCardOut
from fitcircle.domain.profiles.store import CandidateFilter, ProfileStore, TextScope, get_profile_store
from fitcircle.domain.relationships.resolver import RelationshipResolver, ResolvedRelationships
from fitcircle.domain.relationships.store import RelationshipStore, get_relationship_store
from fitcircle.domain.visibility.redactor import ProfileRedactor
from fitcircle.domain.visibility.store import PrivacyStore, get_privacy_store
from fitcircle.infra import rate_limit
from fitcircle.infra.auth import AuthenticatedUser
from fitcircle.infra.rate_limit import RateLimitExceeded
from fitcircle.obs import metrics as obs_metrics
from fitcircle.settings import settings

logger = logging.getLogger(__name__)


class DiscoveryService:
	def __init__(
		self,
		profiles: Optional[ProfileStore] = None,
		relationships: Optional[RelationshipStore] = None,
		privacy: Optional[PrivacyStore] = None,
		*,
		redactor: Optional[ProfileRedactor] = None,
		batch_size: Optional[int] = None,
		max_scan: Optional[int] = None,
	) -> None:
		self._profiles = profiles or get_profile_store()
		self._resolver = RelationshipResolver(relationships or get_relationship_store())
		self._privacy = privacy or get_privacy_store()
		self._redactor = redactor or ProfileRedactor()
		self._batch_size = max(1, batch_size or settings.discovery_batch_size)
		self._max_scan = max(self._batch_size, max_scan or settings.discovery_max_scan)

	async def search(
		self,
		auth_user: AuthenticatedUser,
		query: Optional[str] = None,
		*,
		limit: object = None,
		connected_only: bool = False,
	) -> schemas.SearchResponse:
		"""Find subjects for the viewer; any store failure aborts the whole call."""
		start = time.perf_counter()
		viewer_id = str(auth_user.id)
		needle = ranking.normalize_query(query)
		size = ranking.clamp_limit(
			limit,
			default=settings.discovery_default_limit,
			maximum=settings.discovery_max_limit,
		)
		mode = "connected" if connected_only else ("query" if needle else "recommended")
		try:
			if not await rate_limit.allow("search", viewer_id, limit=settings.search_per_minute):
				raise RateLimitExceeded("per_minute")
			candidates = await self._collect(viewer_id, needle, connected_only, size)
			ranked = ranking.rank(candidates, needle)[:size]
			items = [ProfileCardOut.build(c.profile, c.view) for c in ranked]
			obs_metrics.inc_search_query(mode, len(items))
			logger.info("search.users mode=%s results=%d", mode, len(items))
			return schemas.SearchResponse(mode=mode, query=needle, limit=size, items=items)
		finally:
			obs_metrics.observe_search_latency(mode, time.perf_counter() - start)

	async def _collect(
		self,
		viewer_id: str,
		needle: Optional[str],
		connected_only: bool,
		size: int,
	) -> list[ranking.Candidate]:
		resolved = await self._resolver.resolve(viewer_id)
		if connected_only:
			connected = frozenset(resolved.connected_ids())
			if not connected:
				return []
			base = CandidateFilter(include_ids=connected, discoverable_only=False)
		else:
			base = CandidateFilter(exclude_ids=resolved.blocked_set | {viewer_id})

		if not needle:
			return await self._scan(base, resolved, None, max_rows=self._max_scan)
		# identity matches outrank every gated-only match, so they are collected first
		collected = await self._scan(
			replace(base, text=needle, scope=TextScope.IDENTITY),
			resolved,
			needle,
			max_rows=self._max_scan,
		)
		missing = size - len(collected)
		if missing > 0:
			# counted in visible survivors so hidden values never use up the scan
			collected.extend(
				await self._scan(
					replace(base, text=needle, scope=TextScope.GATED),
					resolved,
					needle,
					wanted=missing,
				)
			)
		return collected

	async def _scan(
		self,
		predicate: CandidateFilter,
		resolved: ResolvedRelationships,
		needle: Optional[str],
		*,
		max_rows: Optional[int] = None,
		wanted: Optional[int] = None,
	) -> list[ranking.Candidate]:
		collected: list[ranking.Candidate] = []
		offset = 0
		while True:
			page = await self._profiles.search(predicate, self._batch_size, offset)
			collected.extend(await self._screen(page, resolved, needle))
			offset += len(page)
			if len(page) < self._batch_size:
				break
			if max_rows is not None and offset >= max_rows:
				break
			if wanted is not None and len(collected) >= wanted:
				break
		return collected

	async def _screen(
		self,
		page: list[RawProfile],
		resolved: ResolvedRelationships,
		needle: Optional[str],
	) -> list[ranking.Candidate]:
		eligible = [
			profile
			for profile in page
			if profile.user_id != resolved.viewer_id and not resolved.is_excluded(profile.user_id)
		]
		if not eligible:
			return []
		settings_by_user = await self._privacy.get_many(profile.user_id for profile in eligible)
		survivors: list[ranking.Candidate] = []
		redacted_count = 0
		for profile in eligible:
			view = resolved.lookup(profile.user_id)
			redacted = self._redactor.redact(profile, settings_by_user.get(profile.user_id), view.status)
			candidate = ranking.Candidate(profile=redacted, view=view)
			if needle and not ranking.matches(candidate, needle):
				continue
			redacted_count += len(redacted.hidden)
			survivors.append(candidate)
		obs_metrics.inc_fields_redacted("search", redacted_count)
		return survivors
