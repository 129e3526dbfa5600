"""REST API surface for distance annotation of feed and directory items."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from localpulse.domain.location import ranker
from localpulse.domain.location.schemas import AnnotateRequest
from localpulse.infra.auth import AuthenticatedUser, get_optional_user
from localpulse.settings import settings

router = APIRouter(prefix="/proximity")


@router.post("/annotate")
async def annotate_items(
	payload: AnnotateRequest,
	auth_user: Optional[AuthenticatedUser] = Depends(get_optional_user),
) -> Dict[str, Any]:
	"""Attach `distance_km` and a display label to each item.

	Anonymous callers never get distances, whatever viewer position they send.
	"""
	viewer = payload.viewer.to_point() if payload.viewer is not None and auth_user is not None else None
	annotated = ranker.annotate(viewer, payload.items)
	radius_km = payload.radius_km
	if radius_km is None and payload.nearby:
		radius_km = settings.nearby_radius_km
	if radius_km is not None and viewer is not None:
		annotated = ranker.within_radius(annotated, radius_km)
	if payload.sort:
		annotated = ranker.sort_by_distance(annotated)
	items = []
	for entry in annotated:
		body = entry.item.model_dump()
		body["distance_km"] = entry.distance_km
		body["distance_label"] = ranker.describe_distance(entry.distance_km)
		items.append(body)
	return {"items": items, "located": viewer is not None}
