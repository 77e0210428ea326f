"""
cicd_monitor.monitor.errors

Domain-specific exceptions raised by the promotion engine and its adapters.

Responsibilities:
- Separate "retry on the next tick" failures (remote calls, store I/O) from
  fatal startup failures (configuration).
"""

from __future__ import annotations


class MonitorError(Exception):
    """
    Base class for failures that leave the day's record untouched.
    The engine persists the previously loaded record and retries on the next tick.
    """


class GatewayError(MonitorError):
    """
    A build/release system call failed (network, auth, throttling, bad payload).
    """

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StoreError(MonitorError):
    # Load/save failed, or the stored blob is not a valid record.
    pass


class RecordStateError(MonitorError):
    # The record lacks data the dispatched action requires (e.g. no build number).
    pass


class ConfigurationError(Exception):
    """
    Missing or invalid startup configuration. Never raised mid-loop.
    """


# --- Module Notes -----------------------------------------------------------
# ConfigurationError is not a MonitorError; the engine only absorbs MonitorError.
