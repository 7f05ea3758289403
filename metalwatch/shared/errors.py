"""
Error taxonomy for the tracker.

Contract violations (InvalidTick, InvalidParameter) are raised at the call
site. Upstream failures (ExternalResourceUnavailable) are raised only by
feeds and persistence adapters. Not-enough-history is NOT an exception:
see ``metalwatch.shared.types.InsufficientData``.
"""


class MetalWatchError(Exception):
    """Base class for all tracker errors."""


class InvalidTick(MetalWatchError, ValueError):
    """Tick rejected by the history store (non-positive price, bad timestamp, unknown instrument)."""


class InvalidParameter(MetalWatchError, ValueError):
    """Caller passed a parameter outside its contract (e.g. period <= 0)."""


class ExternalResourceUnavailable(MetalWatchError):
    """A network feed or storage backend could not be reached or returned garbage."""

    def __init__(self, resource: str, message: str = ""):
        self.resource = resource
        super().__init__(f"{resource} unavailable" + (f": {message}" if message else ""))
