"""REST API surface for family location sharing."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse

from localpulse.domain.location import projector, sharing
from localpulse.domain.location.exceptions import (
	SharingError,
	SharingForbidden,
	SharingRateLimitExceeded,
	SharingTargetNotFound,
	StoreUnavailable,
)
from localpulse.domain.location.schemas import (
	MapMarkerOut,
	MapResponse,
	SharingRecipientsResponse,
	SharingToggleRequest,
	SharingToggleResponse,
)
from localpulse.domain.location.store import PostgresSharingStore, SharingStore
from localpulse.infra.auth import AuthenticatedUser, get_current_user

router = APIRouter(prefix="/family")

_store = PostgresSharingStore()


def get_sharing_store() -> SharingStore:
	return _store


_REASON_STATUS = {
	SharingForbidden.reason: status.HTTP_403_FORBIDDEN,
	SharingTargetNotFound.reason: status.HTTP_404_NOT_FOUND,
	SharingRateLimitExceeded.reason: status.HTTP_429_TOO_MANY_REQUESTS,
	StoreUnavailable.reason: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def _status_for(reason: Optional[str]) -> int:
	# A failed write reports the store message rather than a reason
	return _REASON_STATUS.get(reason or "", status.HTTP_503_SERVICE_UNAVAILABLE)


def _map_error(exc: SharingError) -> HTTPException:
	return HTTPException(_status_for(exc.reason), detail=exc.reason)


@router.get("/members")
async def list_members(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	store: SharingStore = Depends(get_sharing_store),
) -> Dict[str, Any]:
	try:
		candidates = await store.load_family_candidates(auth_user.id)
	except StoreUnavailable as exc:
		raise _map_error(exc) from None
	members = await projector.project(store, auth_user.id, candidates)
	return {"items": [member.as_dict() for member in members]}


@router.get("/map", response_model=MapResponse)
async def family_map(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	store: SharingStore = Depends(get_sharing_store),
) -> MapResponse:
	try:
		candidates = await store.load_family_candidates(auth_user.id)
	except StoreUnavailable as exc:
		raise _map_error(exc) from None
	members = await projector.project(store, auth_user.id, candidates)
	markers = projector.map_markers(members)
	return MapResponse(
		items=[
			MapMarkerOut(
				id=marker.id,
				name=marker.name,
				latitude=marker.latitude,
				longitude=marker.longitude,
				last_updated=marker.last_updated,
				stale=marker.stale,
				avatar_url=marker.avatar_url,
			)
			for marker in markers
		]
	)


@router.put("/sharing/{viewer_id}", response_model=SharingToggleResponse)
async def toggle_sharing(
	viewer_id: str,
	payload: SharingToggleRequest,
	auth_user: AuthenticatedUser = Depends(get_current_user),
	store: SharingStore = Depends(get_sharing_store),
):
	result = await sharing.set_sharing(
		store,
		auth_user.id,
		payload.owner_id or auth_user.id,
		viewer_id,
		payload.enabled,
	)
	if not result.success:
		# Failed toggles keep the {success, error} body the client switches on
		return JSONResponse(status_code=_status_for(result.error), content=result.as_dict())
	return SharingToggleResponse(**result.as_dict())


@router.get("/sharing/recipients", response_model=SharingRecipientsResponse)
async def sharing_recipients(
	auth_user: AuthenticatedUser = Depends(get_current_user),
	store: SharingStore = Depends(get_sharing_store),
) -> SharingRecipientsResponse:
	try:
		recipients = await sharing.sharing_recipients(store, auth_user.id)
	except StoreUnavailable as exc:
		raise _map_error(exc) from None
	return SharingRecipientsResponse(items=recipients)
