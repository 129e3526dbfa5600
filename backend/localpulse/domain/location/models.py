"""Domain models used by the family location service."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

# Ordered (owner_id, viewer_id) pair: "owner shares their location with viewer".
EdgeKey = Tuple[str, str]


@dataclass(slots=True, frozen=True)
class GeoPoint:
	lat: float
	lon: float


@dataclass(slots=True)
class UserLocation:
	"""A user record as supplied by the user source, with the last reported position."""

	id: str
	name: str
	latitude: Optional[float] = None
	longitude: Optional[float] = None
	last_updated: Optional[datetime] = None
	avatar_url: Optional[str] = None

	@property
	def has_coordinates(self) -> bool:
		return self.latitude is not None and self.longitude is not None

	@classmethod
	def from_record(cls, record: Any) -> "UserLocation":
		return cls(
			id=str(record["id"]),
			name=record["name"],
			latitude=float(record["latitude"]) if record["latitude"] is not None else None,
			longitude=float(record["longitude"]) if record["longitude"] is not None else None,
			last_updated=record["last_updated"],
			avatar_url=record.get("avatar_url"),
		)


@dataclass(slots=True, frozen=True)
class ConsentFlags:
	they_share_with_me: bool = False
	i_share_with_them: bool = False


NOT_SHARED = ConsentFlags()
SELF_CONSENT = ConsentFlags(they_share_with_me=True, i_share_with_them=True)


@dataclass(slots=True, frozen=True)
class MemberLocation:
	latitude: float
	longitude: float
	last_updated: Optional[datetime] = None
	stale: bool = False


@dataclass(slots=True)
class FamilyMember:
	"""A family member as seen by one viewer.

	`location` is only ever set when the member shares with the viewer; the
	constructor refuses anything else. `as_dict` omits the coordinate keys
	entirely for redacted members.
	"""

	id: str
	name: str
	they_are_sharing_with_me: bool
	i_am_sharing_with_them: bool
	location: Optional[MemberLocation] = None
	avatar_url: Optional[str] = None

	def __post_init__(self) -> None:
		if self.location is not None and not self.they_are_sharing_with_me:
			raise ValueError("location present for a member who is not sharing")

	@property
	def location_available(self) -> bool:
		return self.location is not None

	def as_dict(self) -> Dict[str, Any]:
		payload: Dict[str, Any] = {
			"id": self.id,
			"name": self.name,
			"avatar_url": self.avatar_url,
			"they_are_sharing_with_me": self.they_are_sharing_with_me,
			"i_am_sharing_with_them": self.i_am_sharing_with_them,
		}
		if not self.they_are_sharing_with_me:
			return payload
		payload["location_available"] = self.location is not None
		if self.location is not None:
			payload["latitude"] = self.location.latitude
			payload["longitude"] = self.location.longitude
			payload["last_updated"] = self.location.last_updated
			payload["stale"] = self.location.stale
		return payload


@dataclass(slots=True, frozen=True)
class MapMarker:
	id: str
	name: str
	latitude: float
	longitude: float
	last_updated: Optional[datetime]
	stale: bool
	avatar_url: Optional[str] = None


def is_stale(last_updated: Optional[datetime], *, now: datetime, max_age_seconds: int) -> bool:
	if last_updated is None:
		return True
	if last_updated.tzinfo is None:
		last_updated = last_updated.replace(tzinfo=timezone.utc)
	return now - last_updated > timedelta(seconds=max_age_seconds)
