"""asyncpg pool shared by the sharing store and the readiness probe."""

from __future__ import annotations

import asyncio
from typing import Optional

import asyncpg

from localpulse.settings import settings

_pool: Optional[asyncpg.pool.Pool] = None
_pool_lock = asyncio.Lock()


async def init_pool() -> asyncpg.pool.Pool:
	"""Create the pool once; concurrent first callers share the same pool."""
	global _pool
	async with _pool_lock:
		if _pool is None:
			_pool = await asyncpg.create_pool(
				dsn=settings.postgres_url,
				min_size=settings.postgres_min_pool_size,
				max_size=settings.postgres_max_pool_size,
				command_timeout=settings.postgres_command_timeout_seconds,
			)
	return _pool


def set_pool(pool: Optional[asyncpg.pool.Pool]) -> None:
	global _pool
	_pool = pool


async def get_pool() -> asyncpg.pool.Pool:
	if _pool is None:
		await init_pool()
	if _pool is None:
		raise RuntimeError("postgres pool is not initialised")
	return _pool


async def run_script(sql: str) -> None:
	"""Execute a multi-statement DDL script on one connection."""
	pool = await get_pool()
	async with pool.acquire() as conn:
		await conn.execute(sql)


async def close_pool() -> None:
	global _pool
	pool, _pool = _pool, None
	if pool is not None:
		await pool.close()
