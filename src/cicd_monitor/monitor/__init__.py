"""
cicd_monitor.monitor

Promotion engine package (daily record state machine).

Responsibilities:
- Record schema and codec, status mapping rules, actions, and the tick engine.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Call sites should go through `engine.PromotionEngine`; actions are exposed for tests.
