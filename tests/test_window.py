"""Tests for the OpenCV window presenter."""

import asyncio
from unittest.mock import DEFAULT, Mock, patch

import numpy as np
import pytest

from facetouch.models.state import Phase, StatusUpdate
from facetouch.ui.window import KEY_NEXT_SESSION, KEY_QUIT, KEY_READY, KEY_TOGGLE_TOUCH, TouchWindow, draw_hud


@pytest.fixture
def fake_app():
    app = Mock()
    app.preview_frame.return_value = np.zeros((48, 64, 3), dtype=np.uint8)
    app.status = StatusUpdate(phase=Phase.IDLE, message="Press SPACE")
    app.is_detecting = False
    app.alerter.label = "Do Not Touch Your Face"
    return app


@pytest.fixture
def window_cv2():
    """Patch the window functions of cv2 so no display is needed."""
    with patch.multiple(
        "facetouch.ui.window.cv2",
        namedWindow=DEFAULT,
        imshow=DEFAULT,
        waitKey=DEFAULT,
        destroyAllWindows=DEFAULT,
        setWindowTitle=DEFAULT,
    ) as mocks:
        yield mocks


class TestDrawHud:
    """Overlay rendering."""

    @pytest.mark.parametrize(
        "status",
        [
            StatusUpdate(phase=Phase.IDLE, message="Press SPACE"),
            StatusUpdate(phase=Phase.COUNTING_DOWN, countdown=2, message="Get ready"),
            StatusUpdate(phase=Phase.RECORDING, progress=0.5, message="Recording"),
            StatusUpdate(phase=Phase.READY, is_touching=True, message="You touched your face!"),
            StatusUpdate(phase=Phase.IDLE, error="Recording stopped"),
        ],
    )
    def test_draws_on_frame(self, status):
        frame = np.zeros((120, 160, 3), dtype=np.uint8)

        drawn = draw_hud(frame, status)

        assert drawn.shape == (120, 160, 3)
        assert drawn.any()

    def test_touch_border_is_red(self):
        frame = np.zeros((120, 160, 3), dtype=np.uint8)

        draw_hud(frame, StatusUpdate(phase=Phase.READY, is_touching=True))

        assert tuple(frame[0, 0]) == (0, 0, 255)


class TestKeys:
    """Key presses become app intents."""

    def test_space_starts_next_session(self, fake_app):
        window = TouchWindow(fake_app, "test")
        assert window.handle_key(KEY_NEXT_SESSION)
        fake_app.start_next_session.assert_called_once()

    def test_r_confirms_ready(self, fake_app):
        window = TouchWindow(fake_app, "test")
        assert window.handle_key(KEY_READY)
        fake_app.confirm_ready.assert_called_once()

    def test_q_quits(self, fake_app):
        assert not TouchWindow(fake_app, "test").handle_key(KEY_QUIT)

    def test_t_toggles_mock_touch(self, fake_app):
        mock_capture = Mock()
        window = TouchWindow(fake_app, "test", mock_capture=mock_capture)

        window.handle_key(KEY_TOGGLE_TOUCH)

        mock_capture.toggle_touching.assert_called_once()

    def test_t_without_mock_ignored(self, fake_app):
        assert TouchWindow(fake_app, "test").handle_key(KEY_TOGGLE_TOUCH)


class TestRun:
    """Cooperative refresh loop."""

    def test_quit_key_stops_loop(self, fake_app, window_cv2):
        window_cv2["waitKey"].side_effect = [255, KEY_NEXT_SESSION, KEY_QUIT]
        window = TouchWindow(fake_app, "test", frame_interval=0)
        stop_event = asyncio.Event()

        async def scenario():
            await window.run(stop_event)

        asyncio.run(scenario())

        assert stop_event.is_set()
        assert window_cv2["imshow"].call_count == 3
        fake_app.start_next_session.assert_called_once()
        window_cv2["destroyAllWindows"].assert_called_once()

    def test_stop_event_ends_loop(self, fake_app, window_cv2):
        window_cv2["waitKey"].return_value = 255
        window = TouchWindow(fake_app, "test", frame_interval=0)

        async def scenario():
            stop_event = asyncio.Event()
            task = asyncio.create_task(window.run(stop_event))
            await asyncio.sleep(0)
            stop_event.set()
            await task

        asyncio.run(scenario())
        window_cv2["destroyAllWindows"].assert_called_once()

    def test_title_follows_label_while_detecting(self, fake_app, window_cv2):
        window_cv2["waitKey"].side_effect = [255, KEY_QUIT]
        fake_app.is_detecting = True
        fake_app.alerter.label = "You touched your face!"
        window = TouchWindow(fake_app, "test", frame_interval=0)

        asyncio.run(window.run(asyncio.Event()))

        window_cv2["setWindowTitle"].assert_called_once_with("test", "You touched your face!")

    def test_blank_frame_before_camera(self, fake_app):
        fake_app.preview_frame.return_value = None
        window = TouchWindow(fake_app, "test")

        frame = window.render()

        assert frame.shape == (480, 640, 3)
