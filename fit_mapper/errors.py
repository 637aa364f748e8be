"""Error types raised by the pipeline stages.

Every error below is an item-level failure: the orchestrator logs it, drops
the garment, and carries on with the rest of the batch.
"""


class FitMapperError(Exception):
    """Base class for pipeline errors."""


class InferenceFailure(FitMapperError):
    """The inference service exchange did not produce a usable response."""


class TransportFailure(InferenceFailure):
    """The request could not be completed (network error or non-2xx status)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedResponse(InferenceFailure):
    """A response arrived but lacked the expected candidate/part shape."""


class MissingArtifact(FitMapperError):
    """A synthesis response was well-formed but carried no inline image."""
