"""Great-circle distance helpers."""

from __future__ import annotations

import math

EARTH_RADIUS_KM = 6371.0


def _valid(value: float, limit: float) -> bool:
	return math.isfinite(value) and -limit <= value <= limit


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
	"""Return the haversine distance between two points in kilometres.

	Inputs are degrees. NaN, infinite or out-of-range coordinates (latitude
	beyond 90, longitude beyond 180) yield NaN instead of raising, so callers
	can filter them out.
	"""

	if not (_valid(lat1, 90.0) and _valid(lat2, 90.0) and _valid(lon1, 180.0) and _valid(lon2, 180.0)):
		return math.nan
	if lat1 == lat2 and lon1 == lon2:
		return 0.0
	phi1, phi2 = math.radians(lat1), math.radians(lat2)
	dphi = math.radians(lat2 - lat1)
	dlambda = math.radians(lon2 - lon1)
	a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
	# Rounding can push `a` a hair past 1 for antipodal points
	if a > 1.0:
		a = 1.0
	return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
