# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Frame pipeline: current camera frame in, embedding out.

Shared by the training orchestrator (writes examples) and the detection
loop (classifies), so both see the same capture and model.
"""

import logging
import time
from typing import Optional

import numpy as np

from facetouch.detection.embedding import Embedder
from facetouch.exceptions import ExtractionFailure

logger = logging.getLogger(__name__)


class FramePipeline:
    """Grabs the current frame and turns it into an embedding.

    Pipeline stages:
    1. Frame capture from the open camera stream
    2. Embedding extraction
    """

    def __init__(self, capture, extractor: Embedder):
        """Initialize frame pipeline.

        Args:
            capture: Open capture object with grab_frame() (real or mock)
            extractor: Embedder with load_model() and async extract()
        """
        self.capture = capture
        self.extractor = extractor
        self._models_loaded = False
        self._last_frame: Optional[np.ndarray] = None

    def load_models(self) -> bool:
        """Load the embedding model.

        Returns:
            True if the model loaded successfully
        """
        logger.info("Loading embedding model...")
        start_time = time.time()

        success = self.extractor.load_model()
        elapsed = time.time() - start_time
        if success:
            logger.info(f"Embedding model loaded in {elapsed:.2f}s")
        else:
            logger.error(f"Failed to load embedding model after {elapsed:.2f}s")

        self._models_loaded = success
        return success

    @property
    def is_models_loaded(self) -> bool:
        return self._models_loaded

    @property
    def last_frame(self) -> Optional[np.ndarray]:
        """Most recent frame that was embedded."""
        return self._last_frame

    async def next_embedding(self) -> np.ndarray:
        """Embed the current frame.

        Returns:
            1-D embedding of the latest frame

        Raises:
            ExtractionFailure: If the frame cannot be captured or embedded
        """
        result = self.capture.grab_frame()
        if not result.success:
            raise ExtractionFailure(f"Frame capture failed: {result.error}")

        self._last_frame = result.frame
        return await self.extractor.extract(result.frame)
