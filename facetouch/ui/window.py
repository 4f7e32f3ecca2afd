# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""OpenCV window presenting the live view and training guidance.

Keys:
    SPACE  start the next recording session
    r      confirm ready (starts detection)
    t      toggle the simulated touch (mock mode only)
    q      quit
"""

import asyncio
import logging

import cv2
import numpy as np

from facetouch.models.state import Phase, StatusUpdate

logger = logging.getLogger(__name__)

KEY_NEXT_SESSION = ord(" ")
KEY_READY = ord("r")
KEY_TOGGLE_TOUCH = ord("t")
KEY_QUIT = ord("q")

HUD_POSITION = (10, 30)
HUD_LINE_HEIGHT = 28
HUD_FONT = cv2.FONT_HERSHEY_SIMPLEX
HUD_FONT_SCALE = 0.6
HUD_THICKNESS = 2
HUD_COLOR = (255, 255, 255)
ERROR_COLOR = (0, 0, 255)
PROGRESS_COLOR = (0, 200, 0)
TOUCH_COLOR = (0, 0, 255)


def draw_hud(frame: np.ndarray, status: StatusUpdate) -> np.ndarray:
    """Draw the guidance overlay on the frame.

    Args:
        frame: Frame to draw on (modified in place)
        status: Status to render

    Returns:
        Frame with HUD drawn
    """
    x, y = HUD_POSITION
    height, width = frame.shape[:2]

    cv2.putText(
        frame,
        status.message,
        (x, y),
        HUD_FONT,
        HUD_FONT_SCALE,
        HUD_COLOR,
        HUD_THICKNESS,
        cv2.LINE_AA,
    )

    if status.phase == Phase.COUNTING_DOWN and status.countdown is not None:
        cv2.putText(
            frame,
            str(status.countdown),
            (width // 2 - 30, height // 2 + 30),
            HUD_FONT,
            4.0,
            HUD_COLOR,
            6,
            cv2.LINE_AA,
        )

    if status.phase == Phase.RECORDING:
        bar_width = width - 2 * x
        top = y + HUD_LINE_HEIGHT // 2
        cv2.rectangle(frame, (x, top), (x + bar_width, top + 12), HUD_COLOR, 1)
        filled = int(bar_width * status.progress)
        if filled > 0:
            cv2.rectangle(frame, (x, top), (x + filled, top + 12), PROGRESS_COLOR, -1)

    if status.is_touching:
        cv2.rectangle(frame, (0, 0), (width - 1, height - 1), TOUCH_COLOR, 12)
        cv2.putText(
            frame,
            "NO!",
            (width // 2 - 70, height - 40),
            HUD_FONT,
            2.5,
            TOUCH_COLOR,
            5,
            cv2.LINE_AA,
        )

    if status.error:
        cv2.putText(
            frame,
            status.error,
            (x, height - 15),
            HUD_FONT,
            0.5,
            ERROR_COLOR,
            1,
            cv2.LINE_AA,
        )

    return frame


class TouchWindow:
    """Cooperative window loop for a FaceTouchApp.

    Each refresh shows the newest frame with the current status drawn on
    it, then turns a pressed key into an app intent.
    """

    def __init__(
        self,
        app,
        window_name: str,
        frame_interval: float = 0.03,
        mock_capture=None,
    ):
        """Initialize window.

        Args:
            app: FaceTouchApp to present and control
            window_name: OpenCV window name
            frame_interval: Delay between refreshes in seconds
            mock_capture: MockCapture to toggle with 't', if running mocked
        """
        self.app = app
        self.window_name = window_name
        self.frame_interval = frame_interval
        self.mock_capture = mock_capture
        self._title = window_name
        self._blank = np.zeros((480, 640, 3), dtype=np.uint8)

    def render(self) -> np.ndarray:
        frame = self.app.preview_frame()
        if frame is None:
            frame = self._blank
        return draw_hud(frame.copy(), self.app.status)

    def handle_key(self, key: int) -> bool:
        """Apply a key press.

        Returns:
            False if the key asks to quit
        """
        if key == KEY_QUIT:
            logger.info("Quit requested")
            return False
        if key == KEY_NEXT_SESSION:
            self.app.start_next_session()
        elif key == KEY_READY:
            self.app.confirm_ready()
        elif key == KEY_TOGGLE_TOUCH and self.mock_capture is not None:
            self.mock_capture.toggle_touching()
        return True

    def _update_title(self) -> None:
        title = self.app.alerter.label if self.app.is_detecting else self.window_name
        if title != self._title:
            cv2.setWindowTitle(self.window_name, title)
            self._title = title

    async def run(self, stop_event: asyncio.Event) -> None:
        """Refresh the window until quit or stop_event is set."""
        cv2.namedWindow(self.window_name, cv2.WINDOW_NORMAL)
        logger.info("Window opened")
        try:
            while not stop_event.is_set():
                cv2.imshow(self.window_name, self.render())
                self._update_title()

                key = cv2.waitKey(1) & 0xFF
                if key != 255 and not self.handle_key(key):
                    stop_event.set()
                    break

                await asyncio.sleep(self.frame_interval)
        finally:
            cv2.destroyAllWindows()
            logger.info("Window closed")
