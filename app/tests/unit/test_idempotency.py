import pytest
from app.utils.idempotency import get_idempotent, set_idempotent


@pytest.mark.asyncio
async def test_idemp_flow(fake_redis):
    key = "pytest-idemp"
    assert await get_idempotent("public_lead", key) is None
    await set_idempotent("public_lead", key, {"ok": True})
    found = await get_idempotent("public_lead", key)
    assert found == {"ok": True}
    assert await fake_redis.ttl(f"idemp:public_lead:{key}") > 0


@pytest.mark.asyncio
async def test_idemp_scopes_are_separate(fake_redis):
    await set_idempotent("lead:user_1", "k1", {"id": "a"})
    assert await get_idempotent("lead:user_2", "k1") is None


@pytest.mark.asyncio
async def test_idemp_without_key_or_redis():
    await set_idempotent("public_lead", "k1", {"ok": True})
    assert await get_idempotent("public_lead", "k1") is None
    assert await get_idempotent("public_lead", None) is None


@pytest.mark.asyncio
@pytest.mark.idempotency
async def test_public_lead_replay(fake_redis, test_client, valid_idempotency_key, valid_lead_data):
    headers = {"Idempotency-Key": valid_idempotency_key}

    first = await test_client.post("/leads/public", json=valid_lead_data, headers=headers)
    second = await test_client.post("/leads/public", json=valid_lead_data, headers=headers)

    assert first.status_code == second.status_code == 200
    assert first.json()["id"] == second.json()["id"]


@pytest.mark.asyncio
@pytest.mark.idempotency
async def test_follow_up_key_reused_on_another_lead(
    fake_redis, test_client, agent_headers, agent_user, create_lead_factory, valid_idempotency_key
):
    first_lead = await create_lead_factory(created_by=agent_user.id)
    second_lead = await create_lead_factory(name="Second Lead", created_by=agent_user.id)
    headers = {**agent_headers, "Idempotency-Key": valid_idempotency_key}
    payload = {"scheduled_at": "2099-01-01T10:00:00+00:00", "type": "call"}

    first = await test_client.post(f"/leads/{first_lead.id}/follow-ups", json=payload, headers=headers)
    second = await test_client.post(f"/leads/{second_lead.id}/follow-ups", json=payload, headers=headers)

    assert first.status_code == second.status_code == 200
    assert first.json()["lead_id"] == first_lead.id
    assert second.json()["lead_id"] == second_lead.id
    assert first.json()["id"] != second.json()["id"]
