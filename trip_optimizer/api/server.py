"""
api/server.py
-------------
FastAPI application for the trip optimizer.

    uvicorn trip_optimizer.api.server:app --reload --port 8000

Routes:
    GET  /v1/health
    POST /v1/itinerary/optimize

Allowed CORS origins come from CORS_ORIGINS (comma-separated, "*" by default).
"""
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from trip_optimizer import __version__, config
from trip_optimizer.api.routes import health, itinerary

logging.basicConfig(level=config.LOG_LEVEL, format="%(levelname)s %(name)s: %(message)s")

app = FastAPI(
    title="Trip Optimizer API",
    version=__version__,
    description=(
        "Scores the places a retrieval stage proposes for a trip and splits "
        "them into per-day visiting orders around each night's lodging."
    ),
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=config.CORS_ORIGINS != ["*"],
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="/v1", tags=["Health"])
app.include_router(itinerary.router, prefix="/v1/itinerary", tags=["Itinerary"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.API_HOST, port=config.API_PORT)
