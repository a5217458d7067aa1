"""
Routers package

  Router                      │ Endpoints
  ────────────────────────────┼──────────────────────────────────────────────
  efficiency_baseline_router  │ /fuelAnalytics/efficiency-baseline/*
"""

from .efficiency_baseline_router import router as efficiency_baseline_router

__all__ = ["efficiency_baseline_router"]


def include_all_routers(app):
    """Include all routers in the FastAPI app."""
    app.include_router(efficiency_baseline_router)
