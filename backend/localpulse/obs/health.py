"""Liveness and readiness probes."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Tuple

from localpulse.infra import postgres
from localpulse.infra.redis import get_redis
from localpulse.obs import metrics

LOGGER = logging.getLogger(__name__)


async def _redis_status(timeout: float = 0.2) -> Dict[str, Any]:
	try:
		await asyncio.wait_for(get_redis().ping(), timeout=timeout)
	except Exception as exc:
		metrics.mark_redis(False)
		LOGGER.warning("Redis readiness check failed", exc_info=True)
		return {"ok": False, "error": type(exc).__name__}
	metrics.mark_redis(True)
	return {"ok": True}


async def _postgres_status(timeout: float = 0.3) -> Dict[str, Any]:
	try:
		pool = await postgres.get_pool()
		async with pool.acquire() as conn:
			await asyncio.wait_for(conn.execute("SELECT 1 FROM location_sharing LIMIT 1"), timeout=timeout)
	except Exception as exc:
		metrics.mark_postgres(False)
		LOGGER.warning("Postgres readiness check failed", exc_info=True)
		return {"ok": False, "error": type(exc).__name__}
	metrics.mark_postgres(True)
	return {"ok": True}


async def liveness() -> Dict[str, Any]:
	return {"status": "ok"}


async def readiness() -> Tuple[int, Dict[str, Any]]:
	redis_state = await _redis_status()
	postgres_state = await _postgres_status()
	ok = redis_state["ok"] and postgres_state["ok"]
	return (
		200 if ok else 503,
		{"status": "ok" if ok else "degraded", "redis": redis_state, "postgres": postgres_state},
	)
