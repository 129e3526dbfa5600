"""Audit helpers for location sharing changes."""

from __future__ import annotations

from typing import Dict

from localpulse.infra.redis import get_redis

SHARING_EVENTS_STREAM = "x:location_sharing.events"


async def log_sharing_event(event: str, fields: Dict[str, str]) -> None:
	payload = {"event": event, **fields}
	await get_redis().xadd(SHARING_EVENTS_STREAM, payload)
