import asyncio
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from redis.exceptions import ConnectionError as RedisConnectionError

from fitcircle.domain.common.store import StoreUnavailable
from fitcircle.domain.profiles.models import RawProfile
from fitcircle.domain.relationships.exceptions import (
	AlreadyConnectedError,
	BlockedError,
	ConnectCooldownError,
	ConnectRateLimitExceeded,
	RelationshipForbidden,
	RelationshipNotFound,
	RelationshipStateError,
	SelfTargetError,
)
from fitcircle.domain.relationships.models import ConnectionStatus, Relationship, RelationshipStatus
from fitcircle.domain.relationships.resolver import RelationshipResolver
from fitcircle.domain.relationships.service import ConnectionService
from fitcircle.infra.auth import AuthenticatedUser
from fitcircle.settings import settings

USER_A = "00000000-0000-0000-0000-000000000101"
USER_B = "00000000-0000-0000-0000-000000000102"
USER_C = "00000000-0000-0000-0000-000000000103"
USER_GHOST = "00000000-0000-0000-0000-000000000199"

A = AuthenticatedUser(id=USER_A)
B = AuthenticatedUser(id=USER_B)
C = AuthenticatedUser(id=USER_C)


class FailingStore:
	"""Every call fails the way an unreachable database does."""

	def __getattr__(self, name):
		async def _fail(*args, **kwargs):
			raise StoreUnavailable(name)

		return _fail


@pytest_asyncio.fixture(autouse=True)
async def seed_users(clear_memory_stores, profiles):
	await profiles.seed(
		[
			RawProfile(user_id=USER_A, handle="ana"),
			RawProfile(user_id=USER_B, handle="ben"),
			RawProfile(user_id=USER_C, handle="cy"),
		]
	)


async def _status(store, viewer: str, other: str) -> RelationshipStatus:
	resolved = await RelationshipResolver(store).resolve(viewer)
	return resolved.status_for(other)


@pytest.mark.asyncio
async def test_request_then_accept_is_symmetric(relationships):
	service = ConnectionService()
	rel = await service.connect(A, USER_B)
	assert rel.status is ConnectionStatus.PENDING
	assert await _status(relationships, USER_A, USER_B) is RelationshipStatus.PENDING_OUTGOING
	assert await _status(relationships, USER_B, USER_A) is RelationshipStatus.PENDING_INCOMING

	accepted = await service.respond(B, rel.id, accept=True)
	assert accepted.status is ConnectionStatus.ACCEPTED
	assert await _status(relationships, USER_A, USER_B) is RelationshipStatus.CONNECTED
	assert await _status(relationships, USER_B, USER_A) is RelationshipStatus.CONNECTED


@pytest.mark.asyncio
async def test_mutual_request_accepts_the_existing_record(relationships):
	service = ConnectionService()
	first = await service.connect(A, USER_B)
	second = await service.connect(B, USER_A)
	assert second.id == first.id
	assert second.status is ConnectionStatus.ACCEPTED
	assert len(relationships.records) == 1


@pytest.mark.asyncio
async def test_simultaneous_requests_converge_on_one_record(relationships):
	service = ConnectionService()
	await asyncio.gather(service.connect(A, USER_B), service.connect(B, USER_A))
	records = list(relationships.records.values())
	assert len(records) == 1
	assert records[0].status is ConnectionStatus.ACCEPTED


@pytest.mark.asyncio
async def test_duplicate_requests_are_rejected(relationships):
	service = ConnectionService()
	await service.connect(A, USER_B)
	with pytest.raises(AlreadyConnectedError) as pending:
		await service.connect(A, USER_B)
	assert pending.value.reason == "already_pending"

	await service.connect(B, USER_A)
	with pytest.raises(AlreadyConnectedError) as connected:
		await service.connect(A, USER_B)
	assert connected.value.reason == "already_connected"
	assert len(relationships.records) == 1


@pytest.mark.asyncio
async def test_self_target_is_rejected_before_any_store_call():
	service = ConnectionService(FailingStore(), FailingStore())
	with pytest.raises(SelfTargetError):
		await service.connect(A, USER_A)


@pytest.mark.asyncio
async def test_unknown_target_is_not_found():
	with pytest.raises(RelationshipNotFound) as exc:
		await ConnectionService().connect(A, USER_GHOST)
	assert exc.value.reason == "user_missing"


@pytest.mark.asyncio
async def test_blocked_pair_cannot_connect_either_way(relationships):
	service = ConnectionService()
	await service.block(A, USER_B)
	with pytest.raises(BlockedError):
		await service.connect(B, USER_A)
	with pytest.raises(BlockedError):
		await service.connect(A, USER_B)
	resolved = await RelationshipResolver(relationships).resolve(USER_B)
	assert resolved.is_blocked(USER_A)
	assert resolved.status_for(USER_A) is RelationshipStatus.NOT_CONNECTED


@pytest.mark.asyncio
async def test_block_overrides_existing_connection(relationships):
	service = ConnectionService()
	await service.connect(A, USER_B)
	await service.connect(B, USER_A)
	blocked = await service.block(B, USER_A)
	assert blocked.status is ConnectionStatus.BLOCKED
	assert blocked.requester_id == USER_B
	assert len(relationships.records) == 1


@pytest.mark.asyncio
async def test_rejected_request_can_be_resent_immediately():
	service = ConnectionService(rejected_cooldown_seconds=0)
	rel = await service.connect(A, USER_B)
	await service.respond(B, rel.id, accept=False)
	again = await service.connect(A, USER_B)
	assert again.id == rel.id
	assert again.status is ConnectionStatus.PENDING


@pytest.mark.asyncio
async def test_rejected_request_respects_configured_cooldown():
	service = ConnectionService(rejected_cooldown_seconds=3600)
	rel = await service.connect(A, USER_B)
	await service.respond(B, rel.id, accept=False)
	with pytest.raises(ConnectCooldownError) as exc:
		await service.connect(A, USER_B)
	assert exc.value.retry_after > 0

	# the party who rejected may still reach out
	reopened = await service.connect(B, USER_A)
	assert reopened.requester_id == USER_B
	assert reopened.status is ConnectionStatus.PENDING


@pytest.mark.asyncio
async def test_cooldown_expires(relationships):
	long_ago = datetime.now(timezone.utc) - timedelta(hours=2)
	await relationships.seed(
		[
			Relationship(
				id="rel-1",
				requester_id=USER_A,
				addressee_id=USER_B,
				status=ConnectionStatus.REJECTED,
				created_at=long_ago,
				updated_at=long_ago,
			)
		]
	)
	service = ConnectionService(rejected_cooldown_seconds=3600)
	rel = await service.connect(A, USER_B)
	assert rel.status is ConnectionStatus.PENDING


@pytest.mark.asyncio
async def test_only_the_addressee_may_respond():
	service = ConnectionService()
	rel = await service.connect(A, USER_B)
	with pytest.raises(RelationshipForbidden):
		await service.respond(A, rel.id, accept=True)
	with pytest.raises(RelationshipNotFound):
		await service.respond(C, rel.id, accept=True)
	await service.respond(B, rel.id, accept=True)
	with pytest.raises(RelationshipStateError):
		await service.respond(B, rel.id, accept=False)


@pytest.mark.asyncio
async def test_remove_deletes_any_status(relationships):
	service = ConnectionService()
	await service.connect(A, USER_B)
	removed = await service.remove(B, USER_A)
	assert removed.status is ConnectionStatus.PENDING
	assert relationships.records == {}
	with pytest.raises(RelationshipNotFound):
		await service.remove(A, USER_B)


@pytest.mark.asyncio
async def test_only_the_blocker_can_remove_a_block(relationships):
	service = ConnectionService()
	await service.block(A, USER_B)
	with pytest.raises(RelationshipForbidden) as exc:
		await service.remove(B, USER_A)
	assert exc.value.reason == "not_blocker"
	await service.remove(A, USER_B)
	assert relationships.records == {}


@pytest.mark.asyncio
async def test_incoming_requests_are_listed_oldest_first(relationships):
	now = datetime.now(timezone.utc)
	await relationships.seed(
		[
			Relationship(
				id="rel-newer",
				requester_id=USER_C,
				addressee_id=USER_A,
				status=ConnectionStatus.PENDING,
				created_at=now,
				updated_at=now,
			),
			Relationship(
				id="rel-older",
				requester_id=USER_B,
				addressee_id=USER_A,
				status=ConnectionStatus.PENDING,
				created_at=now - timedelta(minutes=5),
				updated_at=now - timedelta(minutes=5),
			),
		]
	)
	service = ConnectionService()
	requests = await service.list_requests(A)
	assert [rel.id for rel in requests] == ["rel-older", "rel-newer"]
	assert await service.list_requests(B) == []


@pytest.mark.asyncio
async def test_blocked_list_only_shows_own_blocks():
	service = ConnectionService()
	await service.block(A, USER_B)
	assert len(await service.list_connections(A, ConnectionStatus.BLOCKED)) == 1
	assert await service.list_connections(B, ConnectionStatus.BLOCKED) == []


@pytest.mark.asyncio
async def test_connect_is_rate_limited(monkeypatch):
	monkeypatch.setattr(settings, "connect_per_minute", 1)
	service = ConnectionService()
	await service.connect(A, USER_B)
	with pytest.raises(ConnectRateLimitExceeded):
		await service.connect(A, USER_C)


@pytest.mark.asyncio
async def test_resolver_propagates_store_failure():
	with pytest.raises(StoreUnavailable):
		await RelationshipResolver(FailingStore()).resolve(USER_A)


@pytest.mark.asyncio
async def test_audit_outage_keeps_the_committed_request(relationships, fake_redis, monkeypatch):
	async def _down(*args, **kwargs):
		raise RedisConnectionError("redis unavailable")

	monkeypatch.setattr(fake_redis, "xadd", _down)
	rel = await ConnectionService().connect(A, USER_B)
	assert rel.status is ConnectionStatus.PENDING
	assert await _status(relationships, USER_B, USER_A) is RelationshipStatus.PENDING_INCOMING
