"""
cicd_monitor.api

API package for the monitor's operational endpoints.

Responsibilities:
- FastAPI app factory and router modules.
- API-layer dependency wiring.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The API layer should remain thin: it reports on the loop, it never drives the engine.
