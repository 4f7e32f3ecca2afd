"""Shared fixtures for the face touch monitor tests."""

import asyncio
from unittest.mock import AsyncMock, Mock

import numpy as np
import pytest

from facetouch.alerting import AudioAlert, TouchAlerter
from facetouch.config import Settings, TrainingSettings
from facetouch.detection.knn import KNNClassifier
from facetouch.detection.pipeline import FramePipeline
from facetouch.mocks import MockCapture, MockEmbeddingExtractor
from facetouch.models.state import DetectionResult, Label


class RecordingSleep:
    """Stand-in for asyncio.sleep that records delays and only yields."""

    def __init__(self):
        self.calls = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)
        await asyncio.sleep(0)


def make_result(touching_confidence: float) -> DetectionResult:
    """Build a prediction with the given touching confidence."""
    predicted = Label.TOUCHING if touching_confidence > 0.5 else Label.NOT_TOUCHING
    return DetectionResult(
        predicted_label=predicted,
        confidences={
            Label.NOT_TOUCHING: 1.0 - touching_confidence,
            Label.TOUCHING: touching_confidence,
        },
    )


@pytest.fixture
def result_for():
    """Factory for predictions with a given touching confidence."""
    return make_result


@pytest.fixture
def recording_sleep():
    """Sleep replacement that makes countdowns and pacing instant."""
    return RecordingSleep()


@pytest.fixture
def settings():
    """Default settings, independent of the environment."""
    return Settings()


@pytest.fixture
def training_settings():
    return TrainingSettings()


@pytest.fixture
def mock_capture():
    """Opened simulated camera with small frames."""
    capture = MockCapture(width=64, height=48)
    capture.open()
    return capture


@pytest.fixture
def mock_extractor():
    extractor = MockEmbeddingExtractor(size=8)
    extractor.load_model()
    return extractor


@pytest.fixture
def pipeline(mock_capture, mock_extractor):
    return FramePipeline(mock_capture, mock_extractor)


@pytest.fixture
def classifier():
    return KNNClassifier(neighbors=3)


@pytest.fixture
def mock_audio():
    """AudioAlert double recording play_alert calls."""
    return Mock(spec=AudioAlert)


@pytest.fixture
def alerter(mock_audio):
    return TouchAlerter(audio=mock_audio)


@pytest.fixture
def trained_classifier():
    """Classifier double with both labels populated."""
    classifier = Mock(spec=KNNClassifier)
    classifier.class_count.return_value = 50
    classifier.predict.return_value = make_result(0.05)
    return classifier


@pytest.fixture
def embedding_pipeline():
    """Pipeline double returning a fixed embedding every cycle."""
    pipeline = Mock(spec=FramePipeline)
    pipeline.next_embedding = AsyncMock(return_value=np.zeros(4, dtype=np.float32))
    return pipeline
