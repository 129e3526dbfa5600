"""Resolve, per candidate, which directions of location sharing are enabled for a viewer."""

from __future__ import annotations

import logging
from typing import Dict, Iterable

from localpulse.domain.location.exceptions import StoreUnavailable
from localpulse.domain.location.models import NOT_SHARED, SELF_CONSENT, ConsentFlags
from localpulse.domain.location.store import SharingStore
from localpulse.obs import metrics as obs_metrics

logger = logging.getLogger(__name__)


async def resolve(store: SharingStore, viewer_id: str, candidate_ids: Iterable[str]) -> Dict[str, ConsentFlags]:
	"""Return consent flags for every candidate.

	Inbound (candidate -> viewer) and outbound (viewer -> candidate) edges are
	read with one batched query each, whatever the size of the candidate set.
	Candidates without edges, including ids the store has never heard of,
	resolve to NOT_SHARED. If the store cannot be read, every candidate
	resolves to NOT_SHARED.
	"""

	viewer_id = str(viewer_id)
	result: Dict[str, ConsentFlags] = {}
	others: list[str] = []
	for candidate_id in dict.fromkeys(str(cid) for cid in candidate_ids):
		if candidate_id == viewer_id:
			result[candidate_id] = SELF_CONSENT
		else:
			others.append(candidate_id)
	if not others:
		return result

	try:
		inbound = await store.get_sharing_edges(others, viewer_id)
		outbound = await store.get_viewer_edges(viewer_id, others)
	except StoreUnavailable:
		obs_metrics.inc_consent_fail_closed()
		logger.warning("consent resolve failed closed viewer=%s candidates=%s", viewer_id, len(others))
		for candidate_id in others:
			result[candidate_id] = NOT_SHARED
		return result

	for candidate_id in others:
		they_share = bool(inbound.get(candidate_id, False))
		i_share = bool(outbound.get(candidate_id, False))
		result[candidate_id] = ConsentFlags(they_share_with_me=they_share, i_share_with_them=i_share)
	return result
