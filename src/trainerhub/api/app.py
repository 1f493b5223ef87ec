# src/trainerhub/api/app.py
"""
FastAPI application wiring.

This file creates the `FastAPI` instance, configures CORS and creates tables on startup.
Business logic lives in `trainerhub.negotiation`, `trainerhub.matching` and `trainerhub.messaging`.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from trainerhub.config.settings import get_settings
from trainerhub.core.logging import configure_logging
from trainerhub.storage.database import init_db

from .routes import router

configure_logging()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    init_db()
    yield


settings = get_settings()
app = FastAPI(title=f"{settings.app.name} API", version="0.1.0", lifespan=lifespan)

# Configure via env: TRAINERHUB_CORS_ORIGINS="http://localhost:3000,http://127.0.0.1:3000"
if settings.api.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(router)
