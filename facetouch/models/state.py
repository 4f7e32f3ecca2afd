# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Data models for training sessions, predictions and touch state."""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import Dict, Optional

import numpy as np


class Label(IntEnum):
    """Classifier labels."""

    NOT_TOUCHING = 0
    TOUCHING = 1


class Phase(Enum):
    """Session phase reported to the presentation layer."""

    WAITING_FOR_CAMERA = "waiting_for_camera"
    LOADING_MODEL = "loading_model"
    IDLE = "idle"  # Waiting for the user to start the next session
    COUNTING_DOWN = "counting_down"
    RECORDING = "recording"
    READY = "ready"  # Training done, detection allowed
    DEVICE_UNAVAILABLE = "device_unavailable"


@dataclass(frozen=True)
class LabeledExample:
    """An embedding paired with its label. Never mutated once stored."""

    embedding: np.ndarray
    label: Label


@dataclass
class TrainingSession:
    """Progress of one guided recording session."""

    target_label: Label
    ticks_required: int
    ticks_completed: int = 0

    @property
    def is_complete(self) -> bool:
        return self.ticks_completed >= self.ticks_required

    def advance(self) -> None:
        """Count one recorded tick."""
        if self.is_complete:
            raise ValueError("Session already complete")
        self.ticks_completed += 1


@dataclass
class DetectionResult:
    """Result of classifying one frame."""

    predicted_label: Label
    confidences: Dict[Label, float]

    def confidence(self, label: Label) -> float:
        return self.confidences.get(label, 0.0)


@dataclass
class TouchState:
    """Current and previous touch flags, updated once per detection cycle."""

    is_touching: bool = False
    previous_is_touching: bool = False

    def update(self, is_touching: bool) -> None:
        """Record the outcome of a completed cycle."""
        self.previous_is_touching = self.is_touching
        self.is_touching = is_touching

    @property
    def changed(self) -> bool:
        return self.is_touching != self.previous_is_touching

    @property
    def rising_edge(self) -> bool:
        """True only on the cycle where touching started."""
        return self.is_touching and not self.previous_is_touching


@dataclass
class StatusUpdate:
    """Status snapshot emitted to the presentation layer."""

    phase: Phase
    step: int = 0
    progress: float = 0.0
    is_touching: bool = False
    countdown: Optional[int] = None
    message: str = ""
    error: Optional[str] = None
