"""Build the family-member view a viewer is allowed to see."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional, Sequence

from localpulse.domain.location import consent
from localpulse.domain.location.models import (
	NOT_SHARED,
	FamilyMember,
	MapMarker,
	MemberLocation,
	UserLocation,
	is_stale,
)
from localpulse.domain.location.store import SharingStore
from localpulse.obs import metrics as obs_metrics
from localpulse.settings import settings


async def project(
	store: SharingStore,
	viewer_id: str,
	candidates: Sequence[UserLocation],
	*,
	now: Optional[datetime] = None,
) -> List[FamilyMember]:
	"""Project candidates for a viewer, in input order.

	A candidate's coordinates are copied into the result only when that
	candidate shares with the viewer.
	"""

	now = now or datetime.now(timezone.utc)
	flags = await consent.resolve(store, viewer_id, [candidate.id for candidate in candidates])
	members: List[FamilyMember] = []
	for candidate in candidates:
		consent_flags = flags.get(str(candidate.id), NOT_SHARED)
		location: Optional[MemberLocation] = None
		if consent_flags.they_share_with_me and candidate.has_coordinates:
			location = MemberLocation(
				latitude=float(candidate.latitude),  # type: ignore[arg-type]
				longitude=float(candidate.longitude),  # type: ignore[arg-type]
				last_updated=candidate.last_updated,
				stale=is_stale(candidate.last_updated, now=now, max_age_seconds=settings.location_stale_seconds),
			)
		if not consent_flags.they_share_with_me:
			obs_metrics.inc_projection_member("redacted")
		elif location is None:
			obs_metrics.inc_projection_member("unavailable")
		else:
			obs_metrics.inc_projection_member("visible")
		members.append(
			FamilyMember(
				id=str(candidate.id),
				name=candidate.name,
				they_are_sharing_with_me=consent_flags.they_share_with_me,
				i_am_sharing_with_them=consent_flags.i_share_with_them,
				location=location,
				avatar_url=candidate.avatar_url,
			)
		)
	return members


def map_markers(members: Sequence[FamilyMember]) -> List[MapMarker]:
	"""Markers for the family map: only members with a visible location."""
	markers: List[MapMarker] = []
	for member in members:
		if member.location is None:
			continue
		markers.append(
			MapMarker(
				id=member.id,
				name=member.name,
				latitude=member.location.latitude,
				longitude=member.location.longitude,
				last_updated=member.location.last_updated,
				stale=member.location.stale,
				avatar_url=member.avatar_url,
			)
		)
	return markers
