"""Exception types for the triage engine."""


class CarsonError(Exception):
    """Base class for triage engine errors."""
    pass


class ModelUnavailableError(CarsonError):
    """Raised by a model gateway when the backend cannot produce a response."""
    pass


class MalformedModelOutputError(CarsonError):
    """Raised when model output is unwrapped strictly but is not a JSON object."""

    def __init__(self, raw: str):
        super().__init__(f"Model output is not a JSON object: {raw[:80]!r}")
        self.raw = raw
