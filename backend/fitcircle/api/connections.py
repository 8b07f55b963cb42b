"""REST API surface for connections between users."""

from __future__ import annotations

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status

from fitcircle.domain.relationships.exceptions import (
	BlockedError,
	ConnectCooldownError,
	ConnectRateLimitExceeded,
	RelationshipConflict,
	RelationshipError,
	RelationshipForbidden,
	RelationshipNotFound,
	RelationshipStateError,
	SelfTargetError,
)
from fitcircle.domain.relationships.models import ConnectionStatus
from fitcircle.domain.relationships.schemas import ConnectRequest, RelationshipOut, RespondRequest
from fitcircle.domain.relationships.service import ConnectionService
from fitcircle.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(tags=["connections"])


def get_service() -> ConnectionService:
	return ConnectionService()


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, ConnectRateLimitExceeded):
		return HTTPException(status.HTTP_429_TOO_MANY_REQUESTS, detail=exc.reason)
	if isinstance(exc, ConnectCooldownError):
		return HTTPException(
			status.HTTP_429_TOO_MANY_REQUESTS,
			detail=exc.reason,
			headers={"Retry-After": str(exc.retry_after)},
		)
	if isinstance(exc, RelationshipConflict):
		return HTTPException(status.HTTP_409_CONFLICT, detail=exc.reason)
	if isinstance(exc, (BlockedError, RelationshipForbidden)):
		return HTTPException(status.HTTP_403_FORBIDDEN, detail=exc.reason)
	if isinstance(exc, RelationshipNotFound):
		return HTTPException(status.HTTP_404_NOT_FOUND, detail=exc.reason)
	if isinstance(exc, (SelfTargetError, RelationshipStateError)):
		return HTTPException(status.HTTP_400_BAD_REQUEST, detail=exc.reason)
	return HTTPException(status.HTTP_400_BAD_REQUEST, detail=getattr(exc, "reason", "bad_request"))


@router.post("/connections", response_model=RelationshipOut, status_code=status.HTTP_201_CREATED)
async def connect(
	payload: ConnectRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ConnectionService = Depends(get_service),
) -> RelationshipOut:
	try:
		rel = await service.connect(auth_user, str(payload.target_user_id))
	except (RelationshipError, ConnectRateLimitExceeded) as exc:
		raise _map_error(exc) from None
	return RelationshipOut.from_domain(rel)


@router.delete("/connections/{target_user_id}", response_model=RelationshipOut)
async def remove_connection(
	target_user_id: UUID,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ConnectionService = Depends(get_service),
) -> RelationshipOut:
	try:
		rel = await service.remove(auth_user, str(target_user_id))
	except RelationshipError as exc:
		raise _map_error(exc) from None
	return RelationshipOut.from_domain(rel)


@router.patch("/connections/{relationship_id}", response_model=RelationshipOut)
async def respond(
	relationship_id: UUID,
	payload: RespondRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ConnectionService = Depends(get_service),
) -> RelationshipOut:
	try:
		rel = await service.respond(auth_user, str(relationship_id), accept=payload.action == "accept")
	except RelationshipError as exc:
		raise _map_error(exc) from None
	return RelationshipOut.from_domain(rel)


@router.post("/connections/block", response_model=RelationshipOut)
async def block(
	payload: ConnectRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ConnectionService = Depends(get_service),
) -> RelationshipOut:
	try:
		rel = await service.block(auth_user, str(payload.target_user_id))
	except (RelationshipError, ConnectRateLimitExceeded) as exc:
		raise _map_error(exc) from None
	return RelationshipOut.from_domain(rel)


@router.get("/connections", response_model=List[RelationshipOut])
async def list_connections(
	status_filter: str = Query(default="accepted", alias="status"),
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ConnectionService = Depends(get_service),
) -> List[RelationshipOut]:
	try:
		wanted = ConnectionStatus(status_filter.strip().lower())
	except ValueError:
		raise HTTPException(status.HTTP_400_BAD_REQUEST, detail="invalid_status") from None
	rows = await service.list_connections(auth_user, wanted)
	return [RelationshipOut.from_domain(rel) for rel in rows]


@router.get("/connections/requests", response_model=List[RelationshipOut])
async def list_requests(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	service: ConnectionService = Depends(get_service),
) -> List[RelationshipOut]:
	rows = await service.list_requests(auth_user)
	return [RelationshipOut.from_domain(rel) for rel in rows]
