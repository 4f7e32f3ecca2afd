"""Tests for the continuous touch detection loop."""

import asyncio
from unittest.mock import Mock

import numpy as np
import pytest

from facetouch.detection.knn import KNNClassifier
from facetouch.detection.loop import DetectionLoop
from facetouch.exceptions import ExtractionFailure, InsufficientExamples
from facetouch.models.state import Label


@pytest.fixture
def detection(trained_classifier, embedding_pipeline, alerter):
    return DetectionLoop(trained_classifier, embedding_pipeline, alerter, threshold=0.9)


def run_cycles(detection, count):
    async def scenario():
        return [await detection.run_cycle() for _ in range(count)]

    return asyncio.run(scenario())


class TestConfidenceGate:
    """Touching only counts above the threshold."""

    def test_confident_touch_alerts_once(
        self, detection, trained_classifier, alerter, mock_audio, result_for
    ):
        trained_classifier.predict.return_value = result_for(0.95)

        run_cycles(detection, 1)

        assert detection.touch_state.is_touching
        assert alerter.label == alerter.messages.touching_label
        mock_audio.play_alert.assert_called_once()

    def test_sustained_touch_does_not_repeat(
        self, detection, trained_classifier, alerter, mock_audio, result_for
    ):
        trained_classifier.predict.return_value = result_for(0.95)

        run_cycles(detection, 5)

        assert detection.cycles == 5
        assert alerter.alerts_fired == 1
        assert mock_audio.play_alert.call_count == 1

    def test_unconfident_touch_ignored(
        self, detection, trained_classifier, alerter, mock_audio, result_for
    ):
        trained_classifier.predict.return_value = result_for(0.85)

        results = run_cycles(detection, 1)

        assert results[0].predicted_label == Label.TOUCHING
        assert not detection.touch_state.is_touching
        assert alerter.label == alerter.messages.not_touching_label
        mock_audio.play_alert.assert_not_called()

    def test_threshold_is_exclusive(self, detection, trained_classifier, result_for):
        trained_classifier.predict.return_value = result_for(0.9)
        run_cycles(detection, 1)
        assert not detection.touch_state.is_touching

    def test_not_touching_prediction(self, detection, trained_classifier, mock_audio, result_for):
        trained_classifier.predict.return_value = result_for(0.05)
        run_cycles(detection, 3)
        assert not detection.touch_state.is_touching
        mock_audio.play_alert.assert_not_called()

    def test_each_new_touch_alerts(
        self, detection, trained_classifier, alerter, mock_audio, result_for
    ):
        trained_classifier.predict.side_effect = [
            result_for(0.95),
            result_for(0.95),
            result_for(0.10),
            result_for(0.97),
        ]

        run_cycles(detection, 4)

        assert alerter.alerts_fired == 2
        assert mock_audio.play_alert.call_count == 2


class TestWithTrainedClassifier:
    """Gate applied to real nearest-neighbor predictions."""

    @staticmethod
    def query_with_confidence(confidence):
        """Unit vector whose touching confidence is `confidence`.

        With touching examples at +y, not-touching examples at -y and every
        example voting, the touching confidence is (1 + cos) / 2.
        """
        cos = 2 * confidence - 1
        return np.array([np.sqrt(1 - cos * cos), cos], dtype=np.float32)

    @pytest.fixture
    def knn_detection(self, embedding_pipeline, alerter):
        classifier = KNNClassifier(neighbors=10)
        for _ in range(5):
            classifier.add_example(np.array([0.0, -1.0]), Label.NOT_TOUCHING)
            classifier.add_example(np.array([0.0, 1.0]), Label.TOUCHING)
        return DetectionLoop(classifier, embedding_pipeline, alerter, threshold=0.9)

    def test_touch_release_touch_alerts_twice(
        self, knn_detection, embedding_pipeline, alerter, mock_audio
    ):
        embedding_pipeline.next_embedding.side_effect = [
            self.query_with_confidence(0.95),
            self.query_with_confidence(0.85),
            self.query_with_confidence(0.95),
        ]

        first, second, third = run_cycles(knn_detection, 3)

        assert first.predicted_label == Label.TOUCHING
        assert first.confidence(Label.TOUCHING) == pytest.approx(0.95, abs=1e-4)
        assert second.predicted_label == Label.TOUCHING
        assert second.confidence(Label.TOUCHING) == pytest.approx(0.85, abs=1e-4)
        assert third.confidence(Label.TOUCHING) == pytest.approx(0.95, abs=1e-4)
        assert knn_detection.touch_state.is_touching
        assert alerter.alerts_fired == 2
        assert mock_audio.play_alert.call_count == 2

    def test_below_threshold_never_alerts(
        self, knn_detection, embedding_pipeline, alerter, mock_audio
    ):
        embedding_pipeline.next_embedding.return_value = self.query_with_confidence(0.85)

        run_cycles(knn_detection, 3)

        assert not knn_detection.touch_state.is_touching
        assert alerter.label == alerter.messages.not_touching_label
        mock_audio.play_alert.assert_not_called()


class TestSkippedCycles:
    """Cycles that cannot classify leave the state alone."""

    def test_extraction_failure_skips_cycle(
        self, detection, embedding_pipeline, trained_classifier
    ):
        embedding_pipeline.next_embedding.side_effect = ExtractionFailure("no frame")

        results = run_cycles(detection, 2)

        assert results == [None, None]
        assert detection.cycles == 0
        trained_classifier.predict.assert_not_called()

    def test_missing_examples_skip_cycle(
        self, detection, embedding_pipeline, trained_classifier
    ):
        trained_classifier.class_count.side_effect = lambda label: 50 if label == Label.NOT_TOUCHING else 0

        assert run_cycles(detection, 1) == [None]
        embedding_pipeline.next_embedding.assert_not_called()

    def test_insufficient_examples_skip_cycle(self, detection, trained_classifier):
        trained_classifier.predict.side_effect = InsufficientExamples("empty")
        assert run_cycles(detection, 1) == [None]
        assert detection.cycles == 0

    def test_failed_cycle_keeps_touch_state(
        self, detection, embedding_pipeline, trained_classifier, mock_audio, result_for
    ):
        trained_classifier.predict.return_value = result_for(0.95)
        run_cycles(detection, 1)

        embedding_pipeline.next_embedding.side_effect = ExtractionFailure("no frame")
        run_cycles(detection, 1)

        assert detection.touch_state.is_touching
        assert mock_audio.play_alert.call_count == 1


class TestCallbacks:
    """Change callbacks and label listeners."""

    def test_change_callback_only_on_flip(self, detection, trained_classifier, result_for):
        callback = Mock()
        detection.add_change_callback(callback)
        trained_classifier.predict.side_effect = [
            result_for(0.05),
            result_for(0.95),
            result_for(0.95),
            result_for(0.05),
        ]

        run_cycles(detection, 4)

        assert callback.call_count == 2

    def test_label_listener_every_cycle(self, detection, alerter, trained_classifier, result_for):
        labels = []
        alerter.add_label_listener(labels.append)
        trained_classifier.predict.return_value = result_for(0.95)

        run_cycles(detection, 3)

        assert labels == [alerter.messages.touching_label] * 3

    def test_failing_change_callback_logged(
        self, detection, trained_classifier, result_for, caplog
    ):
        detection.add_change_callback(Mock(side_effect=RuntimeError("boom")))
        trained_classifier.predict.return_value = result_for(0.95)

        run_cycles(detection, 1)

        assert detection.touch_state.is_touching
        assert "Touch change callback error" in caplog.text


class TestBackgroundTask:
    """start() and stop() manage the self-rescheduling task."""

    def test_runs_until_stopped(self, detection):
        async def scenario():
            detection.start()
            assert detection.is_running
            while detection.cycles < 3:
                await asyncio.sleep(0)
            await detection.stop()

        asyncio.run(scenario())
        assert not detection.is_running
        assert detection.cycles >= 3

    def test_start_twice_keeps_one_task(self, detection):
        async def scenario():
            first = detection.start()
            second = detection.start()
            await detection.stop()
            return first, second

        first, second = asyncio.run(scenario())
        assert first is second

    def test_unexpected_error_does_not_stop_loop(
        self, detection, trained_classifier, result_for, caplog
    ):
        outcomes = iter([RuntimeError("boom")])

        def predict(embedding):
            error = next(outcomes, None)
            if error is not None:
                raise error
            return result_for(0.05)

        trained_classifier.predict.side_effect = predict

        async def scenario():
            detection.start()
            while detection.cycles < 2:
                await asyncio.sleep(0)
            await detection.stop()

        asyncio.run(scenario())
        assert detection.cycles >= 2
        assert "Error in detection cycle" in caplog.text
