# src/woundwise/api/app.py
"""
FastAPI application wiring.

This file creates the `FastAPI` instance and mounts the routers.
Business logic lives in `woundwise.care` and `woundwise.staging`.

Native mobile clients do not need CORS. Browser builds of the app (e.g. Expo
web during development) are allowed by listing their origins in
`WOUNDWISE_CORS_ORIGINS` (comma-separated); with it unset no CORS headers are sent.
"""

from __future__ import annotations

import os

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from woundwise.core.logging import configure_logging

from .routes import router


def add_cors(app: FastAPI) -> list[str]:
    """Allow the browser origins named in `WOUNDWISE_CORS_ORIGINS`, if any."""
    origins = [s.strip() for s in os.getenv("WOUNDWISE_CORS_ORIGINS", "").split(",") if s.strip()]
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=["GET", "POST"],
            allow_headers=["Content-Type", "X-Session-Id"],
        )
    return origins


configure_logging()

app = FastAPI(title="WoundWise API", version="0.1.0")
add_cors(app)
app.include_router(router)
