# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Continuous touch detection loop.

Each cycle classifies the current frame, gates the result on the touching
confidence and updates the touch state. Cycles run back to back, yielding to
the event loop in between so the window stays responsive.

Usage:
    loop = DetectionLoop(classifier, pipeline, alerter, threshold=0.9)
    loop.start()
    ...
    await loop.stop()
"""

import asyncio
import logging
from typing import Callable, List, Optional

from facetouch.alerting import TouchAlerter
from facetouch.detection.knn import KNNClassifier
from facetouch.detection.pipeline import FramePipeline
from facetouch.exceptions import ExtractionFailure, InsufficientExamples
from facetouch.models.state import DetectionResult, Label, TouchState

logger = logging.getLogger(__name__)


class DetectionLoop:
    """Self-rescheduling inference task.

    Only constructed once training has handed the classifier over, so it
    never runs while examples are still being written.

    Attributes:
        touch_state: Current and previous touch flags
        cycles: Number of completed classification cycles
    """

    def __init__(
        self,
        classifier: KNNClassifier,
        pipeline: FramePipeline,
        alerter: TouchAlerter,
        threshold: float = 0.9,
    ):
        """Initialize detection loop.

        Args:
            classifier: Trained classifier (read only from here on)
            pipeline: Frame pipeline producing embeddings
            alerter: Side-effect dispatcher for sound and status label
            threshold: Touching confidence must exceed this value
        """
        self.classifier = classifier
        self.pipeline = pipeline
        self.alerter = alerter
        self.threshold = threshold

        self.touch_state = TouchState()
        self.cycles = 0

        self._task: Optional[asyncio.Task] = None
        self._change_callbacks: List[Callable[[TouchState], None]] = []

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def add_change_callback(self, callback: Callable[[TouchState], None]) -> None:
        """Add a callback called whenever is_touching flips.

        Args:
            callback: Function(touch_state) to call
        """
        self._change_callbacks.append(callback)

    def is_touch(self, result: DetectionResult) -> bool:
        """Apply the confidence gate to a prediction."""
        return (
            result.predicted_label == Label.TOUCHING
            and result.confidence(Label.TOUCHING) > self.threshold
        )

    async def run_cycle(self) -> Optional[DetectionResult]:
        """Run a single detection cycle.

        Returns:
            The DetectionResult, or None if the cycle was skipped
        """
        if (
            self.classifier.class_count(Label.NOT_TOUCHING) == 0
            or self.classifier.class_count(Label.TOUCHING) == 0
        ):
            return None

        try:
            embedding = await self.pipeline.next_embedding()
            result = self.classifier.predict(embedding)
        except ExtractionFailure as e:
            logger.debug(f"Skipping detection cycle: {e}")
            return None
        except InsufficientExamples:
            return None

        self.touch_state.update(self.is_touch(result))
        self.cycles += 1

        self.alerter.on_cycle(self.touch_state)

        if self.touch_state.changed:
            logger.info(
                f"Touch state: {self.touch_state.previous_is_touching} -> "
                f"{self.touch_state.is_touching} "
                f"(touching confidence {result.confidence(Label.TOUCHING):.2f})"
            )
            for callback in self._change_callbacks:
                try:
                    callback(self.touch_state)
                except Exception as e:
                    logger.error(f"Touch change callback error: {e}")

        return result

    async def run(self) -> None:
        """Run cycles until cancelled."""
        logger.info(f"Detection loop starting (threshold {self.threshold})")
        while True:
            try:
                await self.run_cycle()
            except Exception as e:
                logger.error(f"Error in detection cycle: {e}")

            # Yield so other tasks (window refresh, signals) get a turn
            await asyncio.sleep(0)

    def start(self) -> asyncio.Task:
        """Start the loop as a background task. No-op if already running."""
        if not self.is_running:
            self._task = asyncio.create_task(self.run(), name="DetectionLoop")
        return self._task

    async def stop(self) -> None:
        """Cancel the loop and wait for it to finish."""
        if self._task is None:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info(f"Detection loop stopped after {self.cycles} cycles")
