# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Face touch monitor application.

Owns the capture device, embedding pipeline, training orchestrator and
detection loop for one session, forwards user intents and fans status
updates out to the presentation layer.

Usage:
    app = FaceTouchApp(settings)
    app.add_status_listener(print)
    await app.start()
    app.start_next_session()   # not touching
    app.start_next_session()   # touching
    app.confirm_ready()        # detection starts
    await app.shutdown()
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

import numpy as np

from facetouch.alerting import AudioAlert, TouchAlerter
from facetouch.capture.webcam import WebcamCapture
from facetouch.config import Settings, get_settings
from facetouch.detection.embedding import EmbeddingExtractor
from facetouch.detection.knn import KNNClassifier
from facetouch.detection.loop import DetectionLoop
from facetouch.detection.pipeline import FramePipeline
from facetouch.exceptions import DeviceUnavailable, FaceTouchError
from facetouch.models.state import Phase, StatusUpdate, TouchState
from facetouch.training.orchestrator import TrainingOrchestrator

logger = logging.getLogger(__name__)


class FaceTouchApp:
    """Coordinates all components for one monitoring session.

    Training and detection never run at the same time: the detection loop
    is created only after the orchestrator hands off its classifier.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        capture=None,
        extractor=None,
        audio: Optional[AudioAlert] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize the application.

        Args:
            settings: Settings (uses global if not provided)
            capture: Capture device (WebcamCapture from settings if not provided)
            extractor: Embedder (EmbeddingExtractor from settings if not provided)
            audio: AudioAlert (created from settings if alerts are enabled)
            sleep: Coroutine function for countdown and pacing delays
        """
        self.settings = settings or get_settings()

        self.capture = capture or WebcamCapture(
            device_index=self.settings.camera.device_index,
            width=self.settings.camera.width,
            height=self.settings.camera.height,
            mirror=self.settings.camera.mirror,
        )
        self.extractor = extractor or EmbeddingExtractor(
            model_name=self.settings.embedding.model_name,
            input_size=self.settings.embedding.input_size,
            device=self.settings.embedding.device,
        )
        if audio is None and self.settings.alert.enabled:
            audio = AudioAlert(
                alert_sound=self.settings.alert.sound_file,
                volume=self.settings.alert.volume,
            )
        self.audio = audio

        self.pipeline = FramePipeline(self.capture, self.extractor)
        self.alerter = TouchAlerter(self.audio, self.settings.messages)
        self.orchestrator = TrainingOrchestrator(
            self.pipeline,
            KNNClassifier(neighbors=self.settings.detection.neighbors),
            settings=self.settings.training,
            messages=self.settings.messages,
            sleep=sleep,
        )
        self.orchestrator.add_status_callback(self._publish)
        self.detection: Optional[DetectionLoop] = None

        self._status = StatusUpdate(
            phase=Phase.WAITING_FOR_CAMERA,
            message=self.settings.messages.waiting_for_camera,
        )
        self._listeners: List[Callable[[StatusUpdate], None]] = []
        self._started = False

    # ==================== Status ====================

    @property
    def status(self) -> StatusUpdate:
        """Most recent status update."""
        return self._status

    @property
    def is_detecting(self) -> bool:
        return self.detection is not None and self.detection.is_running

    def preview_frame(self) -> Optional[np.ndarray]:
        """Frame to show in the window.

        While training or detection is reading the camera, this is the frame
        they last used; otherwise a fresh frame is grabbed for the preview.
        """
        if self.orchestrator.is_busy or self.is_detecting:
            return self.pipeline.last_frame
        if not self.capture.is_opened:
            return None
        result = self.capture.grab_frame()
        if not result.success:
            return self.pipeline.last_frame
        return result.frame

    def add_status_listener(self, callback: Callable[[StatusUpdate], None]) -> None:
        """Add a callback receiving every status update.

        Args:
            callback: Function(status) to call
        """
        self._listeners.append(callback)

    def add_label_listener(self, callback: Callable[[str], None]) -> None:
        """Add a callback receiving the status label after each detection cycle."""
        self.alerter.add_label_listener(callback)

    def _publish(self, status: StatusUpdate) -> None:
        self._status = status
        for callback in self._listeners:
            try:
                callback(status)
            except Exception as e:
                logger.error(f"Status listener error: {e}")

    def _on_touch_change(self, touch_state: TouchState) -> None:
        self._publish(
            StatusUpdate(
                phase=Phase.READY,
                step=self.orchestrator.step,
                progress=1.0,
                is_touching=touch_state.is_touching,
                message=self.alerter.label,
            )
        )

    # ==================== Lifecycle ====================

    async def start(self) -> None:
        """Acquire the camera and load the model.

        Raises:
            DeviceUnavailable: If the camera cannot be opened (fatal)
            FaceTouchError: If the embedding model cannot be loaded
        """
        if self._started:
            return

        logger.info("=" * 50)
        logger.info("Face Touch Monitor Starting")
        logger.info("=" * 50)

        self._publish(
            StatusUpdate(
                phase=Phase.WAITING_FOR_CAMERA,
                message=self.settings.messages.waiting_for_camera,
            )
        )
        try:
            self.capture.open()
        except DeviceUnavailable as e:
            logger.error(f"Camera unavailable: {e}")
            self._publish(
                StatusUpdate(
                    phase=Phase.DEVICE_UNAVAILABLE,
                    message=self.settings.messages.device_unavailable,
                    error=str(e),
                )
            )
            raise
        await asyncio.sleep(0)

        self._publish(
            StatusUpdate(
                phase=Phase.LOADING_MODEL,
                message=self.settings.messages.loading_model,
            )
        )
        if not self.pipeline.load_models():
            self._publish(
                StatusUpdate(
                    phase=Phase.LOADING_MODEL,
                    message=self.settings.messages.loading_model,
                    error="Embedding model could not be loaded",
                )
            )
            raise FaceTouchError("Embedding model could not be loaded")

        if self.audio is not None:
            await self.audio.initialize()

        self._started = True
        self._publish(self.orchestrator.get_status())
        logger.info("All components initialized")

    async def shutdown(self) -> None:
        """Stop detection, cancel training and release the camera."""
        logger.info("Shutting down...")

        if self.detection is not None:
            await self.detection.stop()

        task = self.orchestrator.task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        self.capture.release()

        if self.audio is not None:
            self.audio.close()

        logger.info("Shutdown complete")

    # ==================== Intents ====================

    def start_session(self, label: int) -> bool:
        """Forward a start-session intent to the orchestrator."""
        if not self._started:
            logger.debug("Ignoring start session before startup finished")
            return False
        return self.orchestrator.start_session(label)

    def start_next_session(self) -> bool:
        """Start the session for the current step (0, then 1)."""
        return self.start_session(self.orchestrator.step)

    def confirm_ready(self) -> bool:
        """Finish training and start the detection loop.

        Returns:
            True if detection started
        """
        if not self.orchestrator.confirm_ready():
            return False

        classifier = self.orchestrator.hand_off()
        self.detection = DetectionLoop(
            classifier,
            self.pipeline,
            self.alerter,
            threshold=self.settings.detection.threshold,
        )
        self.detection.add_change_callback(self._on_touch_change)
        self.detection.start()
        return True
