"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from localpulse.api import family, ops, proximity
from localpulse.api.errors import install_error_handlers
from localpulse.domain.location.store import ensure_schema
from localpulse.infra import postgres
from localpulse.infra.redis import close_redis
from localpulse.obs import init as obs_init
from localpulse.settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	await postgres.init_pool()
	await ensure_schema()
	logger.info("localpulse started env=%s", settings.environment)
	try:
		yield
	finally:
		await postgres.close_pool()
		await close_redis()


app = FastAPI(title="LocalPulse Family Locations", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(settings.cors_allow_origins)
if not allow_origins:
	allow_origins = ["http://localhost:3000"] if settings.is_dev() else []

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)
obs_init(app)

app.include_router(family.router, tags=["family"])
app.include_router(proximity.router, tags=["proximity"])
app.include_router(ops.router, tags=["ops"])
