# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Guided training state machine.

Drives the two recording sessions that build the per-user classifier:
first while not touching the face, then while touching it. Each session
starts with a short countdown and then records one example per tick.

State Flow:
    IDLE(step 0) -> COUNTING_DOWN(0) -> RECORDING(0) -> IDLE(step 1)
    IDLE(step 1) -> COUNTING_DOWN(1) -> RECORDING(1) -> IDLE(step 2)
    IDLE(step 2) -> READY (user confirms)
    RECORDING(n) -> IDLE(step n) (extraction keeps failing; retry allowed)

Usage:
    orchestrator = TrainingOrchestrator(pipeline, classifier, settings.training)
    orchestrator.start_session(0)
    ...
    orchestrator.confirm_ready()
    classifier = orchestrator.hand_off()
"""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional

from facetouch.config import MessageSettings, TrainingSettings
from facetouch.detection.knn import KNNClassifier
from facetouch.detection.pipeline import FramePipeline
from facetouch.exceptions import ExtractionFailure, InvalidStateTransition
from facetouch.models.state import Label, Phase, StatusUpdate, TrainingSession

logger = logging.getLogger(__name__)

# Step at which training is finished and only the ready confirmation remains
FINAL_STEP = 2


class TrainingOrchestrator:
    """State machine for the two guided recording sessions.

    Attributes:
        phase: Current Phase (IDLE, COUNTING_DOWN, RECORDING or READY)
        step: Completed sessions so far (0, 1 or 2)
        session: Active TrainingSession while recording
        countdown: Remaining countdown value while counting down
    """

    def __init__(
        self,
        pipeline: FramePipeline,
        classifier: KNNClassifier,
        settings: Optional[TrainingSettings] = None,
        messages: Optional[MessageSettings] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize training orchestrator.

        Args:
            pipeline: Frame pipeline producing embeddings
            classifier: Empty classifier to fill
            settings: Tick and countdown settings
            messages: Phase texts for status updates
            sleep: Coroutine function used for countdown and pacing delays
        """
        self.pipeline = pipeline
        self.settings = settings or TrainingSettings()
        self.messages = messages or MessageSettings()
        self._classifier: Optional[KNNClassifier] = classifier
        self._sleep = sleep

        self.phase = Phase.IDLE
        self.step = 0
        self.session: Optional[TrainingSession] = None
        self.countdown: Optional[int] = None
        self.last_error: Optional[str] = None

        self._recording_label: Optional[Label] = None
        self._task: Optional[asyncio.Task] = None
        self._status_callbacks: List[Callable[[StatusUpdate], None]] = []

    # ==================== Properties ====================

    @property
    def classifier(self) -> Optional[KNNClassifier]:
        """The classifier being trained, None once handed off."""
        return self._classifier

    @property
    def is_busy(self) -> bool:
        """True while counting down or recording."""
        return self.phase in (Phase.COUNTING_DOWN, Phase.RECORDING)

    @property
    def is_complete(self) -> bool:
        """True once both sessions have been recorded."""
        return self.step >= FINAL_STEP

    @property
    def progress(self) -> float:
        """Fraction of the current label's examples recorded (0-1)."""
        if self.is_complete:
            return 1.0
        if self._recording_label is None or self._classifier is None:
            return 0.0
        recorded = self._classifier.class_count(self._recording_label)
        return min(1.0, recorded / self.settings.ticks)

    @property
    def task(self) -> Optional[asyncio.Task]:
        """Task running the current session, if started via start_session()."""
        return self._task

    # ==================== Status ====================

    def add_status_callback(self, callback: Callable[[StatusUpdate], None]) -> None:
        """Add a callback called on every phase or progress change.

        Args:
            callback: Function(status) to call
        """
        self._status_callbacks.append(callback)

    def _message(self) -> str:
        if self.phase == Phase.READY:
            return self.messages.detecting
        if self.is_busy:
            if self._recording_label == Label.TOUCHING:
                return self.messages.recording_touching
            return self.messages.recording_not_touching
        if self.step == 0:
            return self.messages.record_not_touching
        if self.step == 1:
            return self.messages.record_touching
        return self.messages.confirm_ready

    def get_status(self) -> StatusUpdate:
        """Get a status snapshot for the presentation layer."""
        return StatusUpdate(
            phase=self.phase,
            step=self.step,
            progress=self.progress,
            countdown=self.countdown,
            message=self._message(),
            error=self.last_error,
        )

    def _emit(self) -> None:
        status = self.get_status()
        for callback in self._status_callbacks:
            try:
                callback(status)
            except Exception as e:
                logger.error(f"Status callback error: {e}")

    # ==================== Intents ====================

    def can_start(self, label: int) -> bool:
        """Check whether a session for label may start now."""
        return (
            self.phase == Phase.IDLE
            and self._classifier is not None
            and self.step < FINAL_STEP
            and int(label) == self.step
        )

    def _begin(self, label: int) -> Optional[Label]:
        """Claim the orchestrator for a session, or None if not allowed."""
        if not self.can_start(label):
            logger.debug(
                f"Ignoring start of session {label} "
                f"(phase={self.phase.value}, step={self.step})"
            )
            return None

        label = Label(label)
        self.phase = Phase.COUNTING_DOWN
        self._recording_label = label
        self.last_error = None
        return label

    def start_session(self, label: int) -> bool:
        """Start the countdown and recording for a label.

        Ignored unless idle and label matches the current step.

        Args:
            label: 0 for the not-touching session, 1 for touching

        Returns:
            True if the session was started
        """
        claimed = self._begin(label)
        if claimed is None:
            return False

        logger.info(f"Starting training session for {claimed.name}")
        self._task = asyncio.create_task(
            self._run_session(claimed), name=f"TrainingSession-{claimed.name}"
        )
        return True

    async def run_session(self, label: int) -> bool:
        """Run a full session inline (countdown and recording).

        Args:
            label: 0 for the not-touching session, 1 for touching

        Returns:
            True if the session completed, False if ignored or aborted
        """
        claimed = self._begin(label)
        if claimed is None:
            return False
        return await self._run_session(claimed)

    def confirm_ready(self) -> bool:
        """Confirm that the user is ready for detection.

        Returns:
            True if training moved to READY
        """
        if self.phase != Phase.IDLE or self.step != FINAL_STEP:
            logger.debug(
                f"Ignoring ready confirmation "
                f"(phase={self.phase.value}, step={self.step})"
            )
            return False

        self.phase = Phase.READY
        self._recording_label = None
        logger.info("Training complete, ready for detection")
        self._emit()
        return True

    def hand_off(self) -> KNNClassifier:
        """Give up the trained classifier for detection.

        Returns:
            The trained classifier; the orchestrator keeps no reference

        Raises:
            InvalidStateTransition: If not READY or already handed off
        """
        if self.phase != Phase.READY:
            raise InvalidStateTransition(
                f"Cannot hand off classifier in phase {self.phase.value}"
            )
        if self._classifier is None:
            raise InvalidStateTransition("Classifier already handed off")

        classifier = self._classifier
        self._classifier = None
        return classifier

    # ==================== Session ====================

    async def _run_session(self, label: Label) -> bool:
        try:
            await self._countdown()
            return await self._record(label)
        except asyncio.CancelledError:
            logger.info(f"Training session for {label.name} cancelled")
            self.phase = Phase.IDLE
            self.session = None
            self.countdown = None
            raise
        except Exception as e:
            logger.error(f"Training session for {label.name} failed: {e}")
            self._abort(str(e))
            return False

    async def _countdown(self) -> None:
        """Timed countdown phases before recording."""
        for remaining in range(self.settings.countdown_steps, 0, -1):
            self.countdown = remaining
            self._emit()
            await self._sleep(self.settings.countdown_step_seconds)
        self.countdown = None

    async def _record(self, label: Label) -> bool:
        """Record the remaining examples for label, one per tick."""
        remaining = max(0, self.settings.ticks - self._classifier.class_count(label))
        self.session = TrainingSession(target_label=label, ticks_required=remaining)
        self.phase = Phase.RECORDING
        self._emit()

        failures = 0
        while not self.session.is_complete:
            try:
                embedding = await self.pipeline.next_embedding()
            except ExtractionFailure as e:
                failures += 1
                if failures > self.settings.max_tick_retries:
                    self._abort(f"Recording stopped: {e}")
                    return False
                logger.warning(
                    f"Tick {self.session.ticks_completed + 1} failed "
                    f"({failures}/{self.settings.max_tick_retries} retries): {e}"
                )
                await self._sleep(self.settings.tick_delay_seconds)
                continue

            failures = 0
            self._classifier.add_example(embedding, label)
            self.session.advance()

            await self._sleep(self.settings.tick_delay_seconds)
            self._emit()

        logger.info(
            f"Recorded {self._classifier.class_count(label)} examples for {label.name}"
        )
        self.session = None
        self.step += 1
        self.phase = Phase.IDLE
        self._emit()
        return True

    def _abort(self, reason: str) -> None:
        """Return to IDLE at the same step, keeping recorded examples."""
        kept = 0
        if self._classifier is not None and self._recording_label is not None:
            kept = self._classifier.class_count(self._recording_label)
        logger.warning(f"Training session aborted ({kept} examples kept): {reason}")

        self.session = None
        self.countdown = None
        self.phase = Phase.IDLE
        self.last_error = reason
        self._emit()
