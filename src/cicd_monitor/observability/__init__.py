"""
cicd_monitor.observability

Observability package.

Responsibilities:
- Structured logging configuration.
- Tick-scoped context propagation for consistent log enrichment.
"""

# Package marker.
