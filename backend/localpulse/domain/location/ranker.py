"""Distance annotation for feed and directory items."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Generic, List, Mapping, Optional, Sequence, Tuple, TypeVar

from localpulse.domain.location.distance import distance_km
from localpulse.domain.location.models import GeoPoint
from localpulse.obs import metrics as obs_metrics

T = TypeVar("T")

NEARBY_LABEL_THRESHOLD_KM = 0.1


@dataclass(slots=True, frozen=True)
class AnnotatedItem(Generic[T]):
	item: T
	distance_km: Optional[float] = None


def _coordinates(item: Any) -> Optional[Tuple[float, float]]:
	if isinstance(item, Mapping):
		lat, lon = item.get("latitude"), item.get("longitude")
	else:
		lat, lon = getattr(item, "latitude", None), getattr(item, "longitude", None)
	if lat is None or lon is None:
		return None
	try:
		return float(lat), float(lon)
	except (TypeError, ValueError):
		return None


def _distance_or_none(viewer: GeoPoint, item: Any) -> Optional[float]:
	coords = _coordinates(item)
	if coords is None:
		return None
	value = distance_km(viewer.lat, viewer.lon, coords[0], coords[1])
	if not math.isfinite(value):
		return None
	return value


def annotate(viewer_location: Optional[GeoPoint], items: Sequence[T]) -> List[AnnotatedItem[T]]:
	"""Attach the distance from the viewer to every item, keeping order.

	Without a viewer location every distance is None. Items with missing or
	malformed coordinates also get None. Nothing is sorted here.
	"""

	if viewer_location is None:
		obs_metrics.inc_proximity_annotation("anonymous")
		return [AnnotatedItem(item=item) for item in items]
	obs_metrics.inc_proximity_annotation("located")
	return [AnnotatedItem(item=item, distance_km=_distance_or_none(viewer_location, item)) for item in items]


def sort_by_distance(annotated: Sequence[AnnotatedItem[T]]) -> List[AnnotatedItem[T]]:
	"""Stable ascending sort on distance, items without a distance last."""
	return sorted(
		annotated,
		key=lambda entry: (entry.distance_km is None, entry.distance_km if entry.distance_km is not None else 0.0),
	)


def within_radius(annotated: Sequence[AnnotatedItem[T]], radius_km: float) -> List[AnnotatedItem[T]]:
	return [entry for entry in annotated if entry.distance_km is not None and entry.distance_km <= radius_km]


def describe_distance(km: Optional[float]) -> Optional[str]:
	"""Human label for a distance, e.g. "<100m" or "2.4 km"."""
	if km is None or not math.isfinite(km):
		return None
	if km < NEARBY_LABEL_THRESHOLD_KM:
		return "<100m"
	return f"{km:.1f} km"
