"""Profile preview endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from fitcircle.domain.profiles.exceptions import ProfileNotFound
from fitcircle.domain.profiles.schemas import ProfilePreviewOut
from fitcircle.domain.profiles.service import ProfilePreviewService
from fitcircle.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["profiles"])


def get_service() -> ProfilePreviewService:
	return ProfilePreviewService()


@router.get("/profiles/{identifier}", response_model=ProfilePreviewOut)
async def preview_profile(
	identifier: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ProfilePreviewService = Depends(get_service),
) -> ProfilePreviewOut:
	try:
		return await service.preview(auth_user, identifier)
	except ProfileNotFound as exc:
		raise HTTPException(status.HTTP_404_NOT_FOUND, detail=exc.reason) from None
