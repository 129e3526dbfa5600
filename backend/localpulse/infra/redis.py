"""Redis client for the sharing audit stream, toggle budgets and readiness probe."""

from __future__ import annotations

from typing import Optional

import redis.asyncio as redis

from localpulse.settings import settings

_client: Optional[redis.Redis] = None


def get_redis() -> redis.Redis:
	"""Return the shared client, creating it from settings on first use."""
	global _client
	if _client is None:
		_client = redis.from_url(settings.redis_url, decode_responses=True)
	return _client


def set_redis(client: Optional[redis.Redis]) -> Optional[redis.Redis]:
	"""Install `client` (fakeredis in tests) and return the one it replaced."""
	global _client
	previous, _client = _client, client
	return previous


async def close_redis() -> None:
	global _client
	if _client is not None:
		await _client.aclose()
		_client = None
