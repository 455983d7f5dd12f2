"""
trip_optimizer
--------------
Ranking and day-partitioned route optimization for multi-day trips.

Entry points:
    trip_optimizer.pipeline.plan_trip         : full validate → rank → route run
    trip_optimizer.api.server:app             : FastAPI app
"""

__version__ = "1.0.0"
