"""FastAPI application entrypoint."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from fitcircle.api import connections, ops, privacy, profiles, search
from fitcircle.api.errors import install_error_handlers
from fitcircle.infra import postgres
from fitcircle.obs import init as obs_init
from fitcircle.settings import settings


@asynccontextmanager
async def lifespan(app: FastAPI):
	if settings.store_backend == "postgres":
		await postgres.init_pool()
	try:
		yield
	finally:
		await postgres.close_pool()


app = FastAPI(title="FitCircle Visibility API", lifespan=lifespan)
install_error_handlers(app)
obs_init(app)

app.include_router(ops.router)
app.include_router(search.router)
app.include_router(connections.router)
app.include_router(profiles.router)
app.include_router(privacy.router)
