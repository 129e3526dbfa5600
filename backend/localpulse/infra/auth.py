"""Authentication helpers for FastAPI endpoints.

- Bearer JWT verification (HS256) using settings.secret_key.
- Dev-only X-User-Id header fallback for local tools.
- An optional variant for surfaces that also serve anonymous viewers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from localpulse.infra import jwt as jwt_helper
from localpulse.settings import settings


@dataclass(slots=True)
class AuthenticatedUser:
	id: str
	name: Optional[str] = None
	session_id: Optional[str] = None


_bearer_scheme = HTTPBearer(auto_error=False)


def verify_access_jwt(token: str) -> AuthenticatedUser:
	"""Decode and validate an access JWT and return an AuthenticatedUser."""
	try:
		payload = jwt_helper.decode_access(token)
	except Exception:
		# Normalise all decode failures to invalid_token for the API surface
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")

	sub = str(payload.get("sub") or "").strip()
	if not sub:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
	name = payload.get("name")
	session_id = payload.get("sid")
	return AuthenticatedUser(
		id=sub,
		name=str(name) if name is not None else None,
		session_id=str(session_id).strip() if session_id is not None else None,
	)


def _resolve_user(
	x_user_id: Optional[str],
	credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[AuthenticatedUser]:
	if credentials and credentials.scheme.lower() == "bearer":
		return verify_access_jwt(credentials.credentials)
	if settings.is_dev() and x_user_id:
		return AuthenticatedUser(id=x_user_id)
	return None


async def get_current_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthenticatedUser:
	"""Resolve the authenticated user.

	In development we allow a simple header. In all other environments, headers are
	ignored and a valid Bearer JWT is required.
	"""
	user = _resolve_user(x_user_id, credentials)
	if user is None:
		raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_token")
	return user


async def get_optional_user(
	x_user_id: Optional[str] = Header(default=None, alias="X-User-Id"),
	credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> Optional[AuthenticatedUser]:
	"""Like get_current_user, but anonymous callers resolve to None."""
	return _resolve_user(x_user_id, credentials)
