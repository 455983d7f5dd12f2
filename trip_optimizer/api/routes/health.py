"""
api/routes/health.py
--------------------
Liveness probe. Reports the package version so deploys can be checked.
"""
from __future__ import annotations

from fastapi import APIRouter

from trip_optimizer import __version__

router = APIRouter()


@router.get("/health", summary="Liveness probe")
def health() -> dict:
    return {"status": "ok", "service": "trip-optimizer", "version": __version__}
