import asyncio

import asyncpg
import pytest

from fitcircle.domain.common.store import StoreUnavailable, join, store_call
from fitcircle.domain.discovery.ranking import clamp_limit, normalize_query
from fitcircle.domain.profiles.models import RawProfile
from fitcircle.domain.profiles.store import CandidateFilter, MemoryProfileStore, TextScope
from fitcircle.domain.relationships.exceptions import DuplicateRelationship
from fitcircle.domain.relationships.models import ConnectionStatus
from fitcircle.domain.relationships.store import MemoryRelationshipStore
from fitcircle.maintenance.migrations import MIGRATIONS_DIR, pending


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [OSError("refused"), asyncio.TimeoutError(), asyncpg.InterfaceError("closed")])
async def test_store_call_translates_driver_failures(error):
	with pytest.raises(StoreUnavailable) as exc:
		async with store_call("profiles.search"):
			raise error
	assert exc.value.operation == "profiles.search"
	assert exc.value.reason == "store_unavailable"


@pytest.mark.asyncio
async def test_store_call_leaves_domain_errors_alone():
	with pytest.raises(DuplicateRelationship):
		async with store_call("relationships.create"):
			raise DuplicateRelationship()


@pytest.mark.asyncio
async def test_join_cancels_siblings_on_failure():
	cancelled = asyncio.Event()

	async def slow():
		try:
			await asyncio.sleep(10)
		except asyncio.CancelledError:
			cancelled.set()
			raise

	async def broken():
		raise StoreUnavailable("relationships.find_by_either_party")

	with pytest.raises(StoreUnavailable):
		await join(slow(), broken())
	assert cancelled.is_set()


@pytest.mark.asyncio
async def test_join_returns_results_in_order():
	async def value(x):
		await asyncio.sleep(0)
		return x

	assert await join(value(1), value(2)) == [1, 2]


@pytest.mark.asyncio
async def test_memory_store_enforces_pair_uniqueness():
	store = MemoryRelationshipStore()
	await store.create("a", "b")
	with pytest.raises(DuplicateRelationship):
		await store.create("b", "a")


@pytest.mark.asyncio
async def test_conditional_update_detects_lost_race():
	store = MemoryRelationshipStore()
	rel = await store.create("a", "b")
	await store.update(rel.id, expected=ConnectionStatus.PENDING, status=ConnectionStatus.ACCEPTED)
	lost = await store.update(rel.id, expected=ConnectionStatus.PENDING, status=ConnectionStatus.REJECTED)
	assert lost is None
	assert (await store.get(rel.id)).status is ConnectionStatus.ACCEPTED


@pytest.mark.asyncio
async def test_profile_search_splits_identity_and_gated_text():
	store = MemoryProfileStore()
	await store.seed(
		[
			RawProfile(user_id="u1", handle="runner", display_name="Zoe", city="Run City"),
			RawProfile(user_id="u2", handle="run", display_name="Yan"),
			RawProfile(user_id="u3", handle="lifter", display_name="Rita", bio="I run"),
			RawProfile(user_id="u4", handle="coach", display_name="Ben", city="Runcorn"),
		]
	)
	identity = await store.search(CandidateFilter(text="run"), 10, 0)
	assert [profile.user_id for profile in identity] == ["u2", "u1"]

	gated = await store.search(CandidateFilter(text="run", scope=TextScope.GATED), 10, 0)
	assert [profile.user_id for profile in gated] == ["u4", "u3"]


def test_query_normalisation():
	assert normalize_query(None) is None
	assert normalize_query("   ") is None
	assert normalize_query("@") is None
	assert normalize_query(" @Sam ") == "sam"


def test_limit_parsing_never_raises():
	assert clamp_limit(True, default=20, maximum=50) == 20
	assert clamp_limit("-4", default=20, maximum=50) == 20
	assert clamp_limit(" 7 ", default=20, maximum=50) == 7


def test_migrations_are_ordered_and_skipped_once_applied(tmp_path):
	for name in ("0002_more.sql", "0001_base.sql"):
		(tmp_path / name).write_text("SELECT 1;")
	paths = list(tmp_path.glob("*.sql"))
	assert [p.name for p in pending(paths, set())] == ["0001_base.sql", "0002_more.sql"]
	assert [p.name for p in pending(paths, {"0001"})] == ["0002_more.sql"]
	assert (MIGRATIONS_DIR / "0001_visibility_core.sql").exists()
