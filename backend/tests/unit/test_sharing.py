import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from localpulse.domain.location import audit, consent, limits, sharing
from localpulse.settings import settings


@pytest.fixture
def store(sharing_store):
    sharing_store.users.update({"a", "b", "c"})
    return sharing_store


@pytest.mark.asyncio
async def test_enable_is_directional(store):
    result = await sharing.set_sharing(store, "a", "a", "b", True)
    assert result.success is True
    assert result.enabled is True

    assert (await consent.resolve(store, "b", {"a"}))["a"].they_share_with_me is True
    assert (await consent.resolve(store, "a", {"b"}))["b"].they_share_with_me is False


@pytest.mark.asyncio
async def test_repeating_the_same_value_is_idempotent(store):
    first = await sharing.set_sharing(store, "a", "a", "b", True)
    second = await sharing.set_sharing(store, "a", "a", "b", True)
    assert first.success and second.success
    assert second.error is None
    assert store.edges == {("a", "b"): True}


@pytest.mark.asyncio
async def test_disable_flips_the_existing_edge(store):
    await sharing.set_sharing(store, "a", "a", "b", True)
    result = await sharing.set_sharing(store, "a", "a", "b", False)
    assert result.as_dict() == {"success": True, "enabled": False}
    assert store.edges[("a", "b")] is False


@pytest.mark.asyncio
async def test_non_owner_is_rejected_and_edge_unchanged(store):
    store.edges[("a", "b")] = False
    result = await sharing.set_sharing(store, "c", "a", "b", True)
    assert result.success is False
    assert result.error == "forbidden"
    assert store.edges[("a", "b")] is False
    assert "upsert_sharing_edge" not in store.calls


@pytest.mark.asyncio
async def test_unknown_target_is_not_found(store):
    result = await sharing.set_sharing(store, "a", "a", "ghost", True)
    assert result.as_dict() == {"success": False, "error": "not_found"}
    assert ("a", "ghost") not in store.edges


@pytest.mark.asyncio
async def test_self_edge_is_permitted(store):
    result = await sharing.set_sharing(store, "a", "a", "a", True)
    assert result.success is True
    assert "users_exist" not in store.calls


@pytest.mark.asyncio
async def test_store_failure_is_reported_not_raised(store):
    store.fail_writes = True
    result = await sharing.set_sharing(store, "a", "a", "b", True)
    assert result.success is False
    assert result.error == "upsert_sharing_edge failed"


@pytest.mark.asyncio
async def test_audit_event_is_appended(store, fake_redis):
    await sharing.set_sharing(store, "a", "a", "b", True)
    entries = await fake_redis.xrange(audit.SHARING_EVENTS_STREAM)
    assert len(entries) == 1
    _, fields = entries[0]
    assert fields == {"event": "sharing.enabled", "owner_id": "a", "viewer_id": "b"}


@pytest.mark.asyncio
async def test_audit_outage_does_not_fail_the_toggle(store, monkeypatch):
    async def broken(event, fields):
        raise RedisConnectionError("down")

    monkeypatch.setattr(audit, "log_sharing_event", broken)
    result = await sharing.set_sharing(store, "a", "a", "b", True)
    assert result.success is True
    assert store.edges[("a", "b")] is True


@pytest.mark.asyncio
async def test_sharing_recipients_lists_enabled_viewers(store):
    await sharing.set_sharing(store, "a", "a", "b", True)
    await sharing.set_sharing(store, "a", "a", "c", True)
    await sharing.set_sharing(store, "a", "a", "c", False)
    await sharing.set_sharing(store, "b", "b", "a", True)
    assert await sharing.sharing_recipients(store, "a") == ["b"]


@pytest.mark.asyncio
async def test_exhausted_budget_leaves_edge_unchanged(store, monkeypatch):
    monkeypatch.setattr(settings, "sharing_edge_toggle_rate_limit", 1)
    await sharing.set_sharing(store, "a", "a", "b", True)

    result = await sharing.set_sharing(store, "a", "a", "b", False)

    assert result.as_dict() == {"success": False, "error": "rate_limited"}
    assert store.edges[("a", "b")] is True


@pytest.mark.asyncio
async def test_rejected_actor_does_not_spend_the_owner_budget(store, monkeypatch):
    monkeypatch.setattr(settings, "sharing_toggle_rate_limit", 1)
    for _ in range(3):
        await sharing.set_sharing(store, "c", "a", "b", True)
    result = await sharing.set_sharing(store, "a", "a", "b", True)
    assert result.success is True


@pytest.mark.asyncio
async def test_budget_outage_does_not_block_the_toggle(store, monkeypatch):
    async def broken(owner_id, viewer_id, *, now=None):
        raise RedisConnectionError("down")

    monkeypatch.setattr(limits, "spend_toggle", broken)
    result = await sharing.set_sharing(store, "a", "a", "b", True)
    assert result.success is True
