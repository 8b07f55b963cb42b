"""Self-service privacy settings."""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Body, Depends, HTTPException, status

from fitcircle.domain.visibility.exceptions import (
	InvalidVisibilityValue,
	PrivacyRateLimitExceeded,
	UnknownPresetError,
)
from fitcircle.domain.visibility.schemas import PresetOut, PrivacySettingsOut
from fitcircle.domain.visibility.service import PrivacyService
from fitcircle.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/settings/privacy", tags=["privacy"])


def get_service() -> PrivacyService:
	return PrivacyService()


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, InvalidVisibilityValue):
		return HTTPException(
			status.HTTP_422_UNPROCESSABLE_ENTITY,
			detail={"reason": exc.reason, "field": exc.field_key},
		)
	if isinstance(exc, UnknownPresetError):
		return HTTPException(status.HTTP_404_NOT_FOUND, detail=exc.reason)
	if isinstance(exc, PrivacyRateLimitExceeded):
		return HTTPException(status.HTTP_429_TOO_MANY_REQUESTS, detail=exc.reason)
	return HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(exc))


@router.get("", response_model=PrivacySettingsOut)
async def get_privacy(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: PrivacyService = Depends(get_service),
) -> PrivacySettingsOut:
	return await service.get_settings(auth_user)


@router.put("", response_model=PrivacySettingsOut)
async def put_privacy(
	payload: Dict[str, Any] = Body(...),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: PrivacyService = Depends(get_service),
) -> PrivacySettingsOut:
	try:
		return await service.update_settings(auth_user, payload)
	except (InvalidVisibilityValue, PrivacyRateLimitExceeded) as exc:
		raise _map_error(exc) from None


@router.get("/presets", response_model=List[PresetOut])
async def list_presets(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: PrivacyService = Depends(get_service),
) -> List[PresetOut]:
	return service.list_presets()


@router.put("/presets/{name}", response_model=PrivacySettingsOut)
async def apply_preset(
	name: str,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: PrivacyService = Depends(get_service),
) -> PrivacySettingsOut:
	try:
		return await service.apply_preset(auth_user, name)
	except (UnknownPresetError, PrivacyRateLimitExceeded) as exc:
		raise _map_error(exc) from None
