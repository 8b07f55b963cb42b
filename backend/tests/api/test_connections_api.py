import pytest
import pytest_asyncio

from fitcircle.domain.profiles.models import RawProfile

USER_A = "00000000-0000-0000-0000-000000000601"
USER_B = "00000000-0000-0000-0000-000000000602"


def _as(user_id: str) -> dict[str, str]:
	return {"X-User-Id": user_id}


@pytest_asyncio.fixture(autouse=True)
async def seed_users(clear_memory_stores, profiles):
	await profiles.seed([RawProfile(user_id=USER_A, handle="ana"), RawProfile(user_id=USER_B, handle="ben")])


@pytest.mark.asyncio
async def test_connect_accept_and_list(api_client):
	created = await api_client.post("/connections", json={"target_user_id": USER_B}, headers=_as(USER_A))
	assert created.status_code == 201
	rel = created.json()
	assert rel["status"] == "pending"
	assert rel["requester_id"] == USER_A

	requests = await api_client.get("/connections/requests", headers=_as(USER_B))
	assert [row["id"] for row in requests.json()] == [rel["id"]]

	accepted = await api_client.patch(f"/connections/{rel['id']}", json={"action": "accept"}, headers=_as(USER_B))
	assert accepted.status_code == 200
	assert accepted.json()["status"] == "accepted"

	listing = await api_client.get("/connections", headers=_as(USER_A))
	assert [row["id"] for row in listing.json()] == [rel["id"]]


@pytest.mark.asyncio
async def test_error_mapping(api_client):
	self_target = await api_client.post("/connections", json={"target_user_id": USER_A}, headers=_as(USER_A))
	assert self_target.status_code == 400
	assert self_target.json()["detail"] == "self_target"

	await api_client.post("/connections", json={"target_user_id": USER_B}, headers=_as(USER_A))
	duplicate = await api_client.post("/connections", json={"target_user_id": USER_B}, headers=_as(USER_A))
	assert duplicate.status_code == 409
	assert duplicate.json()["detail"] == "already_pending"

	missing = await api_client.post(
		"/connections",
		json={"target_user_id": "00000000-0000-0000-0000-000000000699"},
		headers=_as(USER_A),
	)
	assert missing.status_code == 404

	bad_status = await api_client.get("/connections", params={"status": "friends"}, headers=_as(USER_A))
	assert bad_status.status_code == 400


@pytest.mark.asyncio
async def test_block_then_connect_is_forbidden(api_client):
	blocked = await api_client.post("/connections/block", json={"target_user_id": USER_A}, headers=_as(USER_B))
	assert blocked.status_code == 200
	assert blocked.json()["status"] == "blocked"

	attempt = await api_client.post("/connections", json={"target_user_id": USER_B}, headers=_as(USER_A))
	assert attempt.status_code == 403
	assert attempt.json()["detail"] == "blocked"

	not_yours = await api_client.delete(f"/connections/{USER_B}", headers=_as(USER_A))
	assert not_yours.status_code == 403

	unblocked = await api_client.delete(f"/connections/{USER_A}", headers=_as(USER_B))
	assert unblocked.status_code == 200
	gone = await api_client.delete(f"/connections/{USER_A}", headers=_as(USER_B))
	assert gone.status_code == 404
