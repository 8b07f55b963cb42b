"""Discovery search endpoint."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from fitcircle.domain.discovery.schemas import SearchResponse
from fitcircle.domain.discovery.service import DiscoveryService
from fitcircle.infra.auth import AuthenticatedUser, get_current_user
from fitcircle.infra.rate_limit import RateLimitExceeded

router = APIRouter(tags=["search"])


def get_service() -> DiscoveryService:
	return DiscoveryService()


@router.get("/search/users", response_model=SearchResponse)
async def search_users(
	q: Optional[str] = Query(default=None, max_length=120),
	# kept as text so a bad value falls back to the default limit
	limit: Optional[str] = Query(default=None),
	connected_only: bool = Query(default=False, alias="connectedOnly"),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: DiscoveryService = Depends(get_service),
) -> SearchResponse:
	try:
		return await service.search(auth_user, q, limit=limit, connected_only=connected_only)
	except RateLimitExceeded as exc:
		raise HTTPException(status.HTTP_429_TOO_MANY_REQUESTS, detail=exc.reason) from None
