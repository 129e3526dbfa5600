"""Toggle budgets for location sharing.

Each toggle spends from two fixed one-minute windows in redis: one for the
owner across all their edges, and one for the single (owner, viewer) edge so a
client cannot flap one relative's visibility on and off.
"""

from __future__ import annotations

import time
from typing import Optional

from localpulse.domain.location.exceptions import SharingRateLimitExceeded
from localpulse.infra.redis import get_redis
from localpulse.settings import settings

TOGGLE_WINDOW_SECONDS = 60


def _keys(owner_id: str, viewer_id: str, slot: int) -> tuple[str, str]:
	return (
		f"rl:sharing:owner:{owner_id}:{slot}",
		f"rl:sharing:edge:{owner_id}:{viewer_id}:{slot}",
	)


async def spend_toggle(owner_id: str, viewer_id: str, *, now: Optional[float] = None) -> None:
	"""Count one toggle of the edge owner -> viewer.

	Raises SharingRateLimitExceeded once either window is over budget. Both
	counters are bumped in one round trip, so a rejected call still counts.
	"""

	now = time.time() if now is None else now
	slot = int(now // TOGGLE_WINDOW_SECONDS)
	owner_key, edge_key = _keys(owner_id, viewer_id, slot)
	async with get_redis().pipeline(transaction=True) as pipe:
		pipe.incr(owner_key)
		pipe.expire(owner_key, TOGGLE_WINDOW_SECONDS)
		pipe.incr(edge_key)
		pipe.expire(edge_key, TOGGLE_WINDOW_SECONDS)
		owner_count, _, edge_count, _ = await pipe.execute()
	if int(owner_count) > settings.sharing_toggle_rate_limit:
		raise SharingRateLimitExceeded("owner budget exhausted")
	if int(edge_count) > settings.sharing_edge_toggle_rate_limit:
		raise SharingRateLimitExceeded("edge budget exhausted")
