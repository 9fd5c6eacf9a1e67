from __future__ import annotations


class PickemError(Exception):
    """Base class for errors surfaced to callers of the refresh backend."""


class RequestError(PickemError):
    """Malformed refresh request; rejected before any classification."""


class OddsProviderError(PickemError):
    """The odds provider call failed (transport error, non-2xx, bad body)."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class StoreError(PickemError):
    """Document store read or write failed."""


class ScheduleError(PickemError):
    """Schedule source could not produce the week's games."""
