# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Data models for the face touch monitor."""

from facetouch.models.state import (
    DetectionResult,
    Label,
    LabeledExample,
    Phase,
    StatusUpdate,
    TouchState,
    TrainingSession,
)

__all__ = [
    "DetectionResult",
    "Label",
    "LabeledExample",
    "Phase",
    "StatusUpdate",
    "TouchState",
    "TrainingSession",
]
