# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Mock capture and embedding implementations for running without hardware.

This module provides a simulated webcam and a lightweight deterministic
embedder so the training and detection state machines can be exercised
without a camera or the pretrained model.

Enable mock mode with:
    python -m facetouch.main --mock
"""

import asyncio
import logging
import time
from typing import Optional

import cv2
import numpy as np

from facetouch.capture.webcam import CaptureResult
from facetouch.exceptions import DeviceUnavailable, ExtractionFailure

logger = logging.getLogger(__name__)


class MockCapture:
    """Simulated webcam.

    Generates a dark background with a "face" disc; when touching is
    simulated, a bright "hand" block covers part of the face. The mock can
    be controlled to:
    - Toggle the touching pose
    - Fail the next N frame grabs
    - Refuse to open (device unavailable)
    """

    def __init__(self, width: int = 640, height: int = 480, seed: int = 0):
        """Initialize mock capture.

        Args:
            width: Frame width
            height: Frame height
            seed: Seed for the per-frame noise
        """
        self.width = width
        self.height = height
        self._rng = np.random.default_rng(seed)
        self._opened = False

        # Simulation controls
        self._touching = False
        self._failures_remaining = 0
        self._unavailable = False

        self.frames_grabbed = 0

    @property
    def is_opened(self) -> bool:
        return self._opened

    @property
    def touching(self) -> bool:
        return self._touching

    def open(self) -> None:
        """Simulate opening the device."""
        if self._unavailable:
            raise DeviceUnavailable("Mock camera unavailable")
        self._opened = True
        logger.info("MockCapture: Opened (simulated)")

    def release(self) -> None:
        self._opened = False
        logger.info("MockCapture: Released")

    def grab_frame(self) -> CaptureResult:
        """Generate a synthetic frame."""
        start_time = time.time()

        if not self._opened:
            return CaptureResult(success=False, error="Camera not open")

        if self._failures_remaining > 0:
            self._failures_remaining -= 1
            return CaptureResult(success=False, error="Simulated read failure")

        frame = self._render()
        self.frames_grabbed += 1
        return CaptureResult(
            success=True,
            frame=frame,
            width=self.width,
            height=self.height,
            capture_time_ms=(time.time() - start_time) * 1000,
        )

    def _render(self) -> np.ndarray:
        frame = np.full((self.height, self.width, 3), 40, dtype=np.uint8)
        center = (self.width // 2, self.height // 2)
        radius = min(self.width, self.height) // 4
        cv2.circle(frame, center, radius, (120, 160, 200), -1)

        if self._touching:
            x0 = center[0] - radius // 2
            y0 = center[1]
            cv2.rectangle(
                frame, (x0, y0), (x0 + radius, y0 + radius), (230, 230, 230), -1
            )

        noise = self._rng.integers(0, 8, size=frame.shape, dtype=np.uint8)
        return cv2.add(frame, noise)

    # Simulation control methods

    def simulate_touching(self, touching: bool = True) -> None:
        """Set whether the simulated person touches their face."""
        self._touching = touching
        logger.info(f"MockCapture: Simulating touching={touching}")

    def toggle_touching(self) -> bool:
        """Toggle the touching pose.

        Returns:
            New state (True = touching)
        """
        self.simulate_touching(not self._touching)
        return self._touching

    def simulate_failures(self, count: int) -> None:
        """Fail the next count frame grabs."""
        self._failures_remaining = count
        logger.info(f"MockCapture: Simulating {count} read failures")

    def simulate_unavailable(self, unavailable: bool = True) -> None:
        """Make open() raise DeviceUnavailable."""
        self._unavailable = unavailable


class MockEmbeddingExtractor:
    """Deterministic embedder: a downsampled grayscale thumbnail.

    Identical frames always give identical vectors, and the touching pose
    changes the thumbnail enough to be separable.
    """

    def __init__(self, size: int = 16):
        """Initialize mock extractor.

        Args:
            size: Thumbnail edge length; the embedding has size*size values
        """
        self.size = size
        self._loaded = False
        self._failures_remaining = 0
        self.calls = 0

    def load_model(self) -> bool:
        self._loaded = True
        logger.info("MockEmbeddingExtractor: Model loaded (simulated)")
        return True

    @property
    def is_model_loaded(self) -> bool:
        return self._loaded

    def simulate_failures(self, count: int) -> None:
        """Fail the next count extractions."""
        self._failures_remaining = count

    async def extract(self, frame: Optional[np.ndarray]) -> np.ndarray:
        self.calls += 1
        if self._failures_remaining > 0:
            self._failures_remaining -= 1
            raise ExtractionFailure("Simulated extraction failure")
        if frame is None or frame.size == 0:
            raise ExtractionFailure("Empty frame")

        gray = cv2.cvtColor(frame, cv2.COLOR_BGR2GRAY)
        thumb = cv2.resize(gray, (self.size, self.size), interpolation=cv2.INTER_AREA)
        embedding = thumb.astype(np.float32).ravel() / 255.0

        await asyncio.sleep(0)
        return embedding
