"""Sharing relationship store: the contract the core reads from, and its Postgres adapter."""

from __future__ import annotations

import asyncio
import logging
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Protocol, Set

import asyncpg

from localpulse.domain.location.exceptions import StoreUnavailable
from localpulse.domain.location.models import UserLocation
from localpulse.infra.postgres import get_pool, run_script

logger = logging.getLogger(__name__)


SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS location_sharing (
	owner_id TEXT NOT NULL,
	viewer_id TEXT NOT NULL,
	enabled BOOLEAN NOT NULL DEFAULT FALSE,
	updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
	PRIMARY KEY (owner_id, viewer_id)
);
CREATE INDEX IF NOT EXISTS idx_location_sharing_viewer ON location_sharing (viewer_id);
"""


class SharingStore(Protocol):
	"""Storage collaborator for directional sharing edges.

	Reads return only the edges that exist; a missing key means "not shared".
	Every method raises StoreUnavailable when the backing store fails.
	"""

	async def get_sharing_edges(self, owner_ids: Iterable[str], viewer_id: str) -> Dict[str, bool]:
		"""Edges owner -> viewer for each owner, keyed by owner id."""
		...

	async def get_viewer_edges(self, owner_id: str, viewer_ids: Iterable[str]) -> Dict[str, bool]:
		"""Edges owner -> viewer for each viewer, keyed by viewer id."""
		...

	async def upsert_sharing_edge(self, owner_id: str, viewer_id: str, enabled: bool) -> None:
		...

	async def users_exist(self, user_ids: Iterable[str]) -> Set[str]:
		...

	async def list_viewers(self, owner_id: str) -> List[str]:
		...

	async def load_family_candidates(self, viewer_id: str) -> List[UserLocation]:
		...


@contextmanager
def _store_errors(operation: str) -> Iterator[None]:
	try:
		yield
	except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError, asyncio.TimeoutError) as exc:
		logger.warning("sharing store %s failed: %s", operation, type(exc).__name__)
		raise StoreUnavailable(f"{operation} failed") from exc


def _unique(ids: Iterable[str]) -> List[str]:
	return list(dict.fromkeys(str(uid) for uid in ids))


class PostgresSharingStore:
	"""asyncpg-backed implementation of SharingStore."""

	async def get_sharing_edges(self, owner_ids: Iterable[str], viewer_id: str) -> Dict[str, bool]:
		ids = _unique(owner_ids)
		if not ids:
			return {}
		with _store_errors("get_sharing_edges"):
			pool = await get_pool()
			rows = await pool.fetch(
				"""
				SELECT owner_id, enabled
				FROM location_sharing
				WHERE viewer_id = $1 AND owner_id = ANY($2::text[])
				""",
				str(viewer_id),
				ids,
			)
		return {str(row["owner_id"]): bool(row["enabled"]) for row in rows}

	async def get_viewer_edges(self, owner_id: str, viewer_ids: Iterable[str]) -> Dict[str, bool]:
		ids = _unique(viewer_ids)
		if not ids:
			return {}
		with _store_errors("get_viewer_edges"):
			pool = await get_pool()
			rows = await pool.fetch(
				"""
				SELECT viewer_id, enabled
				FROM location_sharing
				WHERE owner_id = $1 AND viewer_id = ANY($2::text[])
				""",
				str(owner_id),
				ids,
			)
		return {str(row["viewer_id"]): bool(row["enabled"]) for row in rows}

	async def upsert_sharing_edge(self, owner_id: str, viewer_id: str, enabled: bool) -> None:
		with _store_errors("upsert_sharing_edge"):
			pool = await get_pool()
			await pool.execute(
				"""
				INSERT INTO location_sharing (owner_id, viewer_id, enabled)
				VALUES ($1, $2, $3)
				ON CONFLICT (owner_id, viewer_id)
				DO UPDATE SET enabled = EXCLUDED.enabled, updated_at = NOW()
				""",
				str(owner_id),
				str(viewer_id),
				bool(enabled),
			)

	async def users_exist(self, user_ids: Iterable[str]) -> Set[str]:
		ids = _unique(user_ids)
		if not ids:
			return set()
		with _store_errors("users_exist"):
			pool = await get_pool()
			rows = await pool.fetch(
				"SELECT id::text AS id FROM users WHERE id::text = ANY($1::text[]) AND deleted_at IS NULL",
				ids,
			)
		return {str(row["id"]) for row in rows}

	async def list_viewers(self, owner_id: str) -> List[str]:
		with _store_errors("list_viewers"):
			pool = await get_pool()
			rows = await pool.fetch(
				"""
				SELECT viewer_id
				FROM location_sharing
				WHERE owner_id = $1 AND enabled = TRUE AND viewer_id <> owner_id
				ORDER BY viewer_id
				""",
				str(owner_id),
			)
		return [str(row["viewer_id"]) for row in rows]

	async def load_family_candidates(self, viewer_id: str) -> List[UserLocation]:
		with _store_errors("load_family_candidates"):
			pool = await get_pool()
			rows = await pool.fetch(
				"""
				SELECT u.id::text AS id, u.name, u.avatar_url,
				       latest.latitude, latest.longitude, latest.last_updated
				FROM family_relationships fr
				JOIN users u ON u.id = (
					CASE WHEN fr.user_id_1::text = $1 THEN fr.user_id_2 ELSE fr.user_id_1 END
				)
				LEFT JOIN LATERAL (
					SELECT latitude, longitude, last_updated
					FROM device_tokens
					WHERE user_id = u.id AND latitude IS NOT NULL AND longitude IS NOT NULL
					ORDER BY last_updated DESC
					LIMIT 1
				) latest ON TRUE
				WHERE (fr.user_id_1::text = $1 OR fr.user_id_2::text = $1)
				  AND fr.status = 'approved'
				  AND u.deleted_at IS NULL
				ORDER BY u.name
				""",
				str(viewer_id),
			)
		return [UserLocation.from_record(row) for row in rows]


async def ensure_schema() -> None:
	await run_script(SCHEMA_SQL)
