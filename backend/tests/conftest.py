import os
import sys
from pathlib import Path
from typing import Dict, Iterable, List, Set, Tuple

import pytest
import pytest_asyncio
from fakeredis.aioredis import FakeRedis
from httpx import ASGITransport, AsyncClient

# Ensure backend package is importable when tests run from repo root
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
	sys.path.insert(0, str(BACKEND_ROOT))

os.environ.setdefault("SECRET_KEY", "test-secret-key-for-localpulse-tests")

from localpulse.api import family
from localpulse.domain.location.exceptions import StoreUnavailable
from localpulse.domain.location.models import UserLocation
from localpulse.infra import postgres
from localpulse.infra.redis import set_redis
from localpulse.main import app
from localpulse.settings import settings


class InMemorySharingStore:
	"""SharingStore backed by a dict keyed by (owner_id, viewer_id)."""

	def __init__(self) -> None:
		self.edges: Dict[Tuple[str, str], bool] = {}
		self.users: Set[str] = set()
		self.families: Dict[str, List[UserLocation]] = {}
		self.calls: List[str] = []
		self.fail_reads = False
		self.fail_writes = False

	def _read(self, name: str) -> None:
		self.calls.append(name)
		if self.fail_reads:
			raise StoreUnavailable(f"{name} failed")

	async def get_sharing_edges(self, owner_ids: Iterable[str], viewer_id: str) -> Dict[str, bool]:
		self._read("get_sharing_edges")
		return {
			owner_id: self.edges[(owner_id, viewer_id)]
			for owner_id in owner_ids
			if (owner_id, viewer_id) in self.edges
		}

	async def get_viewer_edges(self, owner_id: str, viewer_ids: Iterable[str]) -> Dict[str, bool]:
		self._read("get_viewer_edges")
		return {
			viewer_id: self.edges[(owner_id, viewer_id)]
			for viewer_id in viewer_ids
			if (owner_id, viewer_id) in self.edges
		}

	async def upsert_sharing_edge(self, owner_id: str, viewer_id: str, enabled: bool) -> None:
		self.calls.append("upsert_sharing_edge")
		if self.fail_writes:
			raise StoreUnavailable("upsert_sharing_edge failed")
		self.edges[(owner_id, viewer_id)] = enabled

	async def users_exist(self, user_ids: Iterable[str]) -> Set[str]:
		self._read("users_exist")
		return {uid for uid in user_ids if uid in self.users}

	async def list_viewers(self, owner_id: str) -> List[str]:
		self._read("list_viewers")
		return sorted(
			viewer_id
			for (owner, viewer_id), enabled in self.edges.items()
			if owner == owner_id and enabled and viewer_id != owner_id
		)

	async def load_family_candidates(self, viewer_id: str) -> List[UserLocation]:
		self._read("load_family_candidates")
		return list(self.families.get(viewer_id, []))


@pytest_asyncio.fixture(autouse=True)
async def fake_redis():
	client = FakeRedis(decode_responses=True)
	original = set_redis(client)
	try:
		yield client
	finally:
		set_redis(original)
		await client.flushall()


@pytest.fixture(autouse=True)
def patch_postgres(monkeypatch):
	async def _noop():
		return None

	monkeypatch.setattr(postgres, "init_pool", _noop)


@pytest.fixture(autouse=True)
def force_test_settings():
	"""API tests authenticate via the X-User-Id header, which is only accepted in dev mode."""
	original_env = settings.environment
	settings.environment = "dev"
	try:
		yield
	finally:
		settings.environment = original_env


@pytest.fixture
def sharing_store():
	return InMemorySharingStore()


@pytest_asyncio.fixture
async def api_client(sharing_store):
	app.dependency_overrides[family.get_sharing_store] = lambda: sharing_store
	transport = ASGITransport(app=app)
	try:
		async with AsyncClient(transport=transport, base_url="http://testserver") as client:
			yield client
	finally:
		app.dependency_overrides.pop(family.get_sharing_store, None)
