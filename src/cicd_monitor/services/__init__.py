"""
cicd_monitor.services

Service-layer package.

Responsibilities:
- Own the tick loop and its lifecycle.
- Wire settings into gateways, store and engine.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Services should be pure Python and easily testable with fake gateways/stores.
