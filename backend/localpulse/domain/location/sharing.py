"""The mutating side of location sharing: flipping one directional edge."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional

from redis.exceptions import RedisError

from localpulse.domain.location import audit, limits
from localpulse.domain.location.exceptions import (
	SharingError,
	SharingForbidden,
	SharingTargetNotFound,
	StoreUnavailable,
)
from localpulse.domain.location.store import SharingStore
from localpulse.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class SharingResult:
	success: bool
	error: Optional[str] = None
	enabled: Optional[bool] = None

	def as_dict(self) -> Dict[str, Any]:
		return {key: value for key, value in asdict(self).items() if value is not None}


async def _apply(
	store: SharingStore,
	acting_user_id: str,
	owner_id: str,
	viewer_id: str,
	enabled: bool,
) -> None:
	if acting_user_id != owner_id:
		raise SharingForbidden()
	try:
		await limits.spend_toggle(owner_id, viewer_id)
	except RedisError:
		logger.warning("sharing budget unavailable owner=%s", owner_id, exc_info=True)
	if viewer_id != owner_id:
		found = await store.users_exist([viewer_id])
		if viewer_id not in found:
			raise SharingTargetNotFound()
	await store.upsert_sharing_edge(owner_id, viewer_id, enabled)


async def set_sharing(
	store: SharingStore,
	acting_user_id: str,
	owner_id: str,
	viewer_id: str,
	enabled: bool,
) -> SharingResult:
	"""Share (or stop sharing) `owner_id`'s location with `viewer_id`.

	Only the owner may change their own edge, within the toggle budgets in
	`limits`. Setting the current value again succeeds. Failures come back as `success=False` with a short error; they are
	never retried here.
	"""

	acting_user_id, owner_id, viewer_id = str(acting_user_id), str(owner_id), str(viewer_id)
	enabled = bool(enabled)
	try:
		await _apply(store, acting_user_id, owner_id, viewer_id, enabled)
	except SharingForbidden as exc:
		logger.warning("sharing toggle rejected actor=%s owner=%s", acting_user_id, owner_id)
		obs_metrics.inc_sharing_toggle(exc.reason)
		return SharingResult(success=False, error=exc.reason)
	except StoreUnavailable as exc:
		obs_metrics.inc_sharing_toggle(exc.reason)
		return SharingResult(success=False, error=str(exc))
	except SharingError as exc:
		obs_metrics.inc_sharing_toggle(exc.reason)
		return SharingResult(success=False, error=exc.reason)

	obs_metrics.inc_sharing_toggle("ok")
	try:
		await audit.log_sharing_event(
			"sharing.enabled" if enabled else "sharing.disabled",
			{"owner_id": owner_id, "viewer_id": viewer_id},
		)
	except RedisError:
		logger.warning("sharing audit event dropped owner=%s viewer=%s", owner_id, viewer_id, exc_info=True)
	return SharingResult(success=True, enabled=enabled)


async def sharing_recipients(store: SharingStore, owner_id: str) -> List[str]:
	"""Ids of the users `owner_id` currently shares their location with."""
	return await store.list_viewers(str(owner_id))
