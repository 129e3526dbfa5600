"""Domain-level exceptions for location sharing."""

from __future__ import annotations


class SharingError(Exception):
	"""Base class for location sharing errors."""

	reason: str = "unknown"

	def __init__(self, reason: str | None = None) -> None:
		super().__init__(reason or self.reason)
		if reason:
			self.reason = reason


class SharingForbidden(SharingError):
	reason = "forbidden"


class SharingTargetNotFound(SharingError):
	reason = "not_found"


class _DetailedSharingError(SharingError):
	"""Keeps the class `reason` fixed and puts details in the message."""

	def __init__(self, message: str | None = None) -> None:
		Exception.__init__(self, message or self.reason)


class StoreUnavailable(_DetailedSharingError):
	"""The sharing store could not be read or written."""

	reason = "store_unavailable"


class SharingRateLimitExceeded(_DetailedSharingError):
	"""Too many toggles in the current window."""

	reason = "rate_limited"
