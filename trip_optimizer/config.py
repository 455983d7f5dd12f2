"""
config.py
---------
Central configuration for the trip optimizer.
Every tuning constant is read from the environment once, at import time.

A .env file next to this module is loaded first (shell variables win).
The planner never reads these names directly: they are snapshotted into
schemas.trip.PlannerParameters so a single run sees one consistent set.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

_env_path = Path(__file__).parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path, override=False)


def _env_float(name: str, default: str) -> float:
    return float(os.getenv(name, default))


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# ── Distance model ───────────────────────────────────────────────────────────
EARTH_RADIUS_KM: float = 6371.0

# Fixed-speed travel approximation (no traffic data)
ASSUMED_SPEED_KMH: float     = _env_float("ASSUMED_SPEED_KMH",     "30.0")
TRAVEL_OVERHEAD_HOURS: float = _env_float("TRAVEL_OVERHEAD_HOURS", "0.25")
# Travel distance assumed for a candidate without coordinates
UNKNOWN_TRAVEL_KM: float     = _env_float("UNKNOWN_TRAVEL_KM",     "10.0")

# ── Candidate defaults ───────────────────────────────────────────────────────
DEFAULT_RATING: float = _env_float("DEFAULT_RATING", "4.0")
DEFAULT_VISIT_HOURS: dict[str, float] = {
    "sightseeing": 1.5,
    "shopping":    2.0,
    "food":        1.0,
    "culture":     2.0,
    "other":       1.0,
}

# ── Scoring weights (must sum to 1.0) ────────────────────────────────────────
SCORE_WEIGHT_RATING: float    = _env_float("SCORE_WEIGHT_RATING",    "0.3")
SCORE_WEIGHT_INTEREST: float  = _env_float("SCORE_WEIGHT_INTEREST",  "0.4")
SCORE_WEIGHT_PROXIMITY: float = _env_float("SCORE_WEIGHT_PROXIMITY", "0.2")
SCORE_WEIGHT_BUDGET: float    = _env_float("SCORE_WEIGHT_BUDGET",    "0.1")

# ── Proximity term (SUGGESTED DEFAULT: calibrate empirically) ───────────────
PROXIMITY_COMFORT_RADIUS_KM: float = _env_float("PROXIMITY_COMFORT_RADIUS_KM", "25.0")
PROXIMITY_OUTLIER_KM: float        = _env_float("PROXIMITY_OUTLIER_KM",        "80.0")
PROXIMITY_OUTLIER_PENALTY: float   = _env_float("PROXIMITY_OUTLIER_PENALTY",   "-200.0")
UNKNOWN_LOCATION_PENALTY: float    = _env_float("UNKNOWN_LOCATION_PENALTY",    "-5.0")

# ── Budget term ──────────────────────────────────────────────────────────────
# Per-person, per-day amount below which cheap places are preferred.
# Currency-agnostic on purpose: the retrieval stage already works in the
# traveller's currency.
LOW_BUDGET_PER_DAY: float = _env_float("LOW_BUDGET_PER_DAY", "3000.0")

# ── Day window (minutes from midnight) ───────────────────────────────────────
DAY_START_MIN: int          = int(os.getenv("DAY_START_MIN",          "540"))    # 09:00
DAY_END_MIN: int            = int(os.getenv("DAY_END_MIN",            "1200"))   # 20:00
ARRIVAL_BUFFER_MIN: int     = int(os.getenv("ARRIVAL_BUFFER_MIN",     "90"))
DEPARTURE_BUFFER_MIN: int   = int(os.getenv("DEPARTURE_BUFFER_MIN",   "180"))
MIN_WINDOW_HOURS: float     = _env_float("MIN_WINDOW_HOURS",     "1.5")
TIME_FLEX_HOURS: float      = _env_float("TIME_FLEX_HOURS",      "0.5")

# ── Geofence / greedy chaining (SUGGESTED DEFAULT: calibrate empirically) ───
GEOFENCE_RADIUS_KM: float       = _env_float("GEOFENCE_RADIUS_KM",       "40.0")
GEOFENCE_WIDEN_FACTOR: float    = _env_float("GEOFENCE_WIDEN_FACTOR",    "2.5")
# Pool counts as "small" when it holds at most this many candidates per remaining day
SMALL_POOL_PER_DAY: float       = _env_float("SMALL_POOL_PER_DAY",       "2.0")
SCORE_DISTANCE_SCALE: float     = _env_float("SCORE_DISTANCE_SCALE",     "10.0")

# ── Pipeline ─────────────────────────────────────────────────────────────────
# Highest-ranked candidates handed to the route optimizer
TOP_CANDIDATES: int = int(os.getenv("TOP_CANDIDATES", "18"))

# ── Observability ────────────────────────────────────────────────────────────
LOG_LEVEL: str           = os.getenv("LOG_LEVEL", "INFO")
STRUCTURED_LOGGING: bool = _env_bool("STRUCTURED_LOGGING", "true")
# JSONL event logs; defaults to ./logs relative to the working directory
LOGS_DIR: str            = os.getenv("LOGS_DIR", "logs")

# ── HTTP API ─────────────────────────────────────────────────────────────────
API_HOST: str           = os.getenv("API_HOST", "127.0.0.1")
API_PORT: int           = int(os.getenv("API_PORT", "8000"))
CORS_ORIGINS: list[str] = [
    o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
]
