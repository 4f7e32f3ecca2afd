# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Exception classes for the face touch monitor."""

from typing import Optional


class FaceTouchError(Exception):
    """Base exception for all face touch monitor errors."""

    pass


class DeviceUnavailable(FaceTouchError):
    """Raised when the capture device cannot be opened.

    Fatal to the session: there is no automatic retry.
    """

    def __init__(self, message: str, device_index: Optional[int] = None):
        self.device_index = device_index
        super().__init__(message)


class ExtractionFailure(FaceTouchError):
    """Raised when a frame cannot be captured or embedded.

    Recovered locally: the current tick or detection cycle is skipped.
    """

    pass


class InsufficientExamples(FaceTouchError):
    """Raised when predicting before both labels have an example."""

    pass


class InvalidStateTransition(FaceTouchError):
    """Raised when an operation does not apply to the current training phase."""

    pass
