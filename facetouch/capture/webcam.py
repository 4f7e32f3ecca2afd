# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Live webcam capture.

The device is opened once for the whole session. Every reader grabs the
latest frame from the same stream.
"""

import logging
import time
from dataclasses import dataclass
from typing import Optional

import cv2
import numpy as np

from facetouch.exceptions import DeviceUnavailable

logger = logging.getLogger(__name__)


@dataclass
class CaptureResult:
    """Result of a frame capture operation."""

    success: bool = False
    frame: Optional[np.ndarray] = None
    width: int = 0
    height: int = 0
    capture_time_ms: float = 0.0
    error: Optional[str] = None


class WebcamCapture:
    """Captures frames from a local camera.

    Usage:
        capture = WebcamCapture(device_index=0)
        capture.open()
        result = capture.grab_frame()
        if result.success:
            process(result.frame)
        capture.release()
    """

    def __init__(
        self,
        device_index: int = 0,
        width: int = 640,
        height: int = 480,
        mirror: bool = True,
    ):
        """Initialize webcam capture.

        Args:
            device_index: OpenCV device index
            width: Requested frame width
            height: Requested frame height
            mirror: Flip frames horizontally
        """
        self.device_index = device_index
        self.width = width
        self.height = height
        self.mirror = mirror
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    def is_opened(self) -> bool:
        return self._cap is not None and self._cap.isOpened()

    def open(self) -> None:
        """Open the device and check that it delivers frames.

        Raises:
            DeviceUnavailable: If the device cannot be opened or read
        """
        if self.is_opened:
            return

        logger.info(f"Opening camera {self.device_index}")
        try:
            cap = cv2.VideoCapture(self.device_index)
        except cv2.error as e:
            raise DeviceUnavailable(
                f"OpenCV error opening camera {self.device_index}: {e}",
                device_index=self.device_index,
            ) from e

        if not cap.isOpened():
            cap.release()
            raise DeviceUnavailable(
                f"Camera {self.device_index} could not be opened",
                device_index=self.device_index,
            )

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        # Reduce buffer size to get fresher frames
        cap.set(cv2.CAP_PROP_BUFFERSIZE, 1)

        ret, frame = cap.read()
        if not ret or frame is None:
            cap.release()
            raise DeviceUnavailable(
                f"Camera {self.device_index} opened but returned no frames",
                device_index=self.device_index,
            )

        self._cap = cap
        height, width = frame.shape[:2]
        logger.info(f"Camera {self.device_index} streaming at {width}x{height}")

    def grab_frame(self) -> CaptureResult:
        """Grab the current frame from the open stream.

        Returns:
            CaptureResult with frame data or error
        """
        start_time = time.time()

        if not self.is_opened:
            return CaptureResult(success=False, error="Camera not open")

        try:
            ret, frame = self._cap.read()
        except cv2.error as e:
            elapsed = (time.time() - start_time) * 1000
            logger.error(f"OpenCV error capturing frame: {e}")
            return CaptureResult(
                success=False,
                capture_time_ms=elapsed,
                error=f"OpenCV error: {e}",
            )

        elapsed = (time.time() - start_time) * 1000
        if not ret or frame is None:
            return CaptureResult(
                success=False,
                capture_time_ms=elapsed,
                error="Failed to read frame from camera",
            )

        if self.mirror:
            frame = cv2.flip(frame, 1)

        height, width = frame.shape[:2]
        return CaptureResult(
            success=True,
            frame=frame,
            width=width,
            height=height,
            capture_time_ms=elapsed,
        )

    def release(self) -> None:
        """Release the device."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None
            logger.info(f"Camera {self.device_index} released")
