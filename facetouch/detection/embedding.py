# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Frame embeddings from a pretrained MobileNet.

The classification head is removed so the model returns the pooled
feature vector for the whole frame (1280 values for MobileNetV2).
"""

import asyncio
import logging
from typing import Optional, Protocol

import cv2
import numpy as np

from facetouch.exceptions import ExtractionFailure

logger = logging.getLogger(__name__)


class Embedder(Protocol):
    """Anything that turns a frame into a fixed-length vector."""

    def load_model(self) -> bool:
        ...

    async def extract(self, frame: np.ndarray) -> np.ndarray:
        ...


def _load_backbone(model_name: str, device: str):
    """Lazy load a torchvision model with its classifier head removed."""
    try:
        import torch
        import torchvision

        model = torchvision.models.get_model(model_name, weights="DEFAULT")
        if hasattr(model, "classifier"):
            model.classifier = torch.nn.Identity()
        elif hasattr(model, "fc"):
            model.fc = torch.nn.Identity()
        model.eval()
        model.to(device)
        logger.info(f"Embedding model {model_name} loaded on {device}")
        return model
    except Exception as e:
        logger.error(f"Failed to load embedding model {model_name}: {e}")
        raise


def _load_transforms(model_name: str, input_size: int):
    """Preset resize, crop and normalization that match the model's weights."""
    import torchvision

    weights = torchvision.models.get_model_weights(model_name).DEFAULT
    return weights.transforms(resize_size=input_size, crop_size=input_size)


class EmbeddingExtractor:
    """Computes frame embeddings with a pretrained torchvision model.

    Usage:
        extractor = EmbeddingExtractor()
        extractor.load_model()
        embedding = await extractor.extract(frame)
    """

    def __init__(
        self,
        model_name: str = "mobilenet_v2",
        input_size: int = 224,
        device: str = "cpu",
    ):
        """Initialize embedding extractor.

        Args:
            model_name: torchvision model name
            input_size: Square input resolution
            device: Torch device string
        """
        self.model_name = model_name
        self.input_size = input_size
        self.device = device
        self._model = None
        self._transforms = None

    def load_model(self) -> bool:
        """Load the model.

        Returns:
            True if model loaded successfully
        """
        try:
            if self._model is None:
                self._model = _load_backbone(self.model_name, self.device)
            return True
        except Exception as e:
            logger.error(f"Failed to load embedding model: {e}")
            return False

    @property
    def is_model_loaded(self) -> bool:
        return self._model is not None

    def preprocess(self, frame: np.ndarray):
        """Convert a BGR frame to the normalized tensor the model expects.

        Args:
            frame: BGR image (OpenCV format)

        Returns:
            Float tensor of shape (3, input_size, input_size)
        """
        import torch

        if self._transforms is None:
            self._transforms = _load_transforms(self.model_name, self.input_size)

        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
        image = torch.from_numpy(np.ascontiguousarray(rgb)).permute(2, 0, 1)
        return self._transforms(image)

    def embed(self, frame: np.ndarray) -> np.ndarray:
        """Compute the embedding for a frame synchronously."""
        import torch

        if self._model is None:
            self._model = _load_backbone(self.model_name, self.device)

        batch = self.preprocess(frame).unsqueeze(0).to(self.device)
        with torch.no_grad():
            features = self._model(batch)
        return features.squeeze(0).cpu().numpy().astype(np.float32)

    async def extract(self, frame: Optional[np.ndarray]) -> np.ndarray:
        """Compute the embedding for a frame, then yield to the event loop.

        Args:
            frame: BGR image (OpenCV format)

        Returns:
            1-D float32 embedding

        Raises:
            ExtractionFailure: If the frame is empty or inference fails
        """
        if frame is None or frame.size == 0:
            raise ExtractionFailure("Empty frame")

        try:
            embedding = self.embed(frame)
        except Exception as e:
            raise ExtractionFailure(f"Embedding failed: {e}") from e

        await asyncio.sleep(0)
        return embedding
