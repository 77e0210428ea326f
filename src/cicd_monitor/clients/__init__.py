"""
cicd_monitor.clients

Gateways to external systems used by the promotion engine.

Responsibilities:
- Azure DevOps build and release REST clients.
- PAT providers.
"""

# Package marker.
