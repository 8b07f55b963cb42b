import os
import sys
from pathlib import Path

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis
from httpx import ASGITransport, AsyncClient

# Settings are read at import time; tests run against the in-memory stores.
os.environ.setdefault("SECRET_KEY", "test-secret-key-with-enough-length-0123456789")
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("ENV", "dev")

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

from fitcircle.domain.profiles import store as profile_store
from fitcircle.domain.relationships import store as relationship_store
from fitcircle.domain.visibility import store as privacy_store
from fitcircle.infra import postgres
from fitcircle.main import app
from fitcircle.settings import settings


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	from fitcircle.infra.redis import redis_client, set_redis_client

	original = redis_client._client
	client = FakeRedis(decode_responses=True)
	set_redis_client(client)
	try:
		yield client
	finally:
		set_redis_client(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)
	monkeypatch.setattr(postgres, "close_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""API tests authenticate via X-User-Id, which is only accepted in dev mode."""
	original_env = settings.environment
	original_backend = settings.store_backend
	settings.environment = "dev"
	settings.store_backend = "memory"
	try:
		yield
	finally:
		settings.environment = original_env
		settings.store_backend = original_backend


@pytest_asyncio.fixture(autouse=True)
async def clear_memory_stores():
	stores = (
		profile_store.memory_store(),
		relationship_store.memory_store(),
		privacy_store.memory_store(),
	)
	for store in stores:
		await store.reset()
	yield
	for store in stores:
		await store.reset()


@pytest.fixture
def profiles():
	return profile_store.memory_store()


@pytest.fixture
def relationships():
	return relationship_store.memory_store()


@pytest.fixture
def privacy():
	return privacy_store.memory_store()


@pytest_asyncio.fixture
async def api_client():
	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://testserver") as client:
		yield client
