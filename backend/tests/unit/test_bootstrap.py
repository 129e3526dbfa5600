from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI

from localpulse import obs
from localpulse.domain.location.store import SCHEMA_SQL, ensure_schema
from localpulse.infra import postgres
from localpulse.obs.middleware import ObservabilityMiddleware
from localpulse.settings import settings


def test_observability_installs_once_per_app():
    app = FastAPI()
    assert obs.init(app) is True
    assert obs.init(app) is True
    installed = [entry for entry in app.user_middleware if entry.cls is ObservabilityMiddleware]
    assert len(installed) == 1

    other = FastAPI()
    obs.init(other)
    assert any(entry.cls is ObservabilityMiddleware for entry in other.user_middleware)


def test_observability_can_be_switched_off(monkeypatch):
    monkeypatch.setattr(settings, "obs_enabled", False)
    app = FastAPI()
    assert obs.init(app) is False
    assert app.user_middleware == []


@pytest.mark.asyncio
async def test_ensure_schema_runs_on_one_connection():
    conn = MagicMock()
    conn.execute = AsyncMock(return_value="CREATE TABLE")
    pool = MagicMock()
    pool.acquire.return_value.__aenter__ = AsyncMock(return_value=conn)
    pool.acquire.return_value.__aexit__ = AsyncMock(return_value=False)
    postgres.set_pool(pool)
    try:
        await ensure_schema()
    finally:
        postgres.set_pool(None)

    conn.execute.assert_awaited_once_with(SCHEMA_SQL)


@pytest.mark.asyncio
async def test_missing_pool_is_reported():
    postgres.set_pool(None)
    with pytest.raises(RuntimeError):
        await postgres.get_pool()


@pytest.mark.asyncio
async def test_close_pool_clears_the_shared_pool():
    pool = MagicMock()
    pool.close = AsyncMock()
    postgres.set_pool(pool)

    await postgres.close_pool()

    pool.close.assert_awaited_once()
    with pytest.raises(RuntimeError):
        await postgres.get_pool()
