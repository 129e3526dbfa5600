"""Pydantic schemas for family location and proximity endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from localpulse.domain.location.models import GeoPoint


class SharingToggleRequest(BaseModel):
	enabled: bool = Field(..., description="Whether to share the owner's location with the target user")
	owner_id: Optional[str] = Field(default=None, description="Defaults to the signed-in user; anyone else is rejected")


class SharingToggleResponse(BaseModel):
	success: bool
	error: Optional[str] = None
	enabled: Optional[bool] = None


class SharingRecipientsResponse(BaseModel):
	items: List[str]


class MapMarkerOut(BaseModel):
	id: str
	name: str
	latitude: float
	longitude: float
	last_updated: Optional[datetime] = None
	stale: bool = False
	avatar_url: Optional[str] = None


class MapResponse(BaseModel):
	items: List[MapMarkerOut]


class ViewerLocation(BaseModel):
	"""Where the viewer currently is, as reported by the client."""

	lat: float = Field(..., ge=-90.0, le=90.0)
	lon: float = Field(..., ge=-180.0, le=180.0)

	def to_point(self) -> GeoPoint:
		return GeoPoint(lat=self.lat, lon=self.lon)


class ProximityItemIn(BaseModel):
	"""A post, business or other content record with an optional position."""

	model_config = ConfigDict(extra="allow")

	id: str
	latitude: Optional[float] = None
	longitude: Optional[float] = None


class AnnotateRequest(BaseModel):
	viewer: Optional[ViewerLocation] = None
	items: List[ProximityItemIn] = Field(default_factory=list, max_length=500)
	sort: bool = False
	radius_km: Optional[float] = Field(default=None, gt=0)
	nearby: bool = Field(default=False, description="Keep only items inside the configured nearby radius")
