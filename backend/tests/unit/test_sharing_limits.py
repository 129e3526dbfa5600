import pytest

from localpulse.domain.location import limits
from localpulse.domain.location.exceptions import SharingRateLimitExceeded
from localpulse.settings import settings


@pytest.fixture
def small_budgets(monkeypatch):
    monkeypatch.setattr(settings, "sharing_toggle_rate_limit", 3)
    monkeypatch.setattr(settings, "sharing_edge_toggle_rate_limit", 2)


@pytest.mark.asyncio
async def test_toggles_within_budget_pass(small_budgets):
    await limits.spend_toggle("a", "b", now=1_000.0)
    await limits.spend_toggle("a", "b", now=1_001.0)


@pytest.mark.asyncio
async def test_single_edge_budget_is_enforced(small_budgets):
    await limits.spend_toggle("a", "b", now=1_000.0)
    await limits.spend_toggle("a", "b", now=1_001.0)
    with pytest.raises(SharingRateLimitExceeded) as excinfo:
        await limits.spend_toggle("a", "b", now=1_002.0)
    assert excinfo.value.reason == "rate_limited"
    assert str(excinfo.value) == "edge budget exhausted"


@pytest.mark.asyncio
async def test_owner_budget_spans_edges(small_budgets):
    for viewer_id in ("b", "c", "d"):
        await limits.spend_toggle("a", viewer_id, now=1_000.0)
    with pytest.raises(SharingRateLimitExceeded) as excinfo:
        await limits.spend_toggle("a", "e", now=1_000.0)
    assert str(excinfo.value) == "owner budget exhausted"


@pytest.mark.asyncio
async def test_budgets_are_per_owner(small_budgets):
    for _ in range(2):
        await limits.spend_toggle("a", "b", now=1_000.0)
    await limits.spend_toggle("b", "a", now=1_000.0)


@pytest.mark.asyncio
async def test_next_window_resets_the_budget(small_budgets):
    await limits.spend_toggle("a", "b", now=1_000.0)
    await limits.spend_toggle("a", "b", now=1_010.0)
    await limits.spend_toggle("a", "b", now=1_080.0)


@pytest.mark.asyncio
async def test_counters_expire_with_the_window(small_budgets, fake_redis):
    await limits.spend_toggle("a", "b", now=1_000.0)
    slot = int(1_000.0 // limits.TOGGLE_WINDOW_SECONDS)
    ttl = await fake_redis.ttl(f"rl:sharing:edge:a:b:{slot}")
    assert 0 < ttl <= limits.TOGGLE_WINDOW_SECONDS
