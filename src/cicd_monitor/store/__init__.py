"""
cicd_monitor.store

State store adapters: one JSON record per UTC date.

Responsibilities:
- Azure Blob storage (production) and a local directory store (dev/test).
"""

# Package marker.
