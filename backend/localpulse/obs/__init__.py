"""Observability bootstrap: JSON logging plus request metrics for one app."""

from __future__ import annotations

from fastapi import FastAPI

from localpulse.obs import logging as obs_logging
from localpulse.obs import middleware
from localpulse.settings import settings


def init(app: FastAPI) -> bool:
	"""Install logging and the request middleware on `app`, at most once.

	Returns False when observability is switched off in settings.
	"""
	if not settings.obs_enabled:
		return False
	if getattr(app.state, "obs_installed", False):
		return True
	obs_logging.configure_logging()
	middleware.install(app)
	app.state.obs_installed = True
	return True


__all__ = ["init"]
