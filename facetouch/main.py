# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Face touch monitor entry point.

Usage:
    python -m facetouch.main
    python -m facetouch.main --mock --log-level DEBUG
"""

import argparse
import asyncio
import logging
import signal
import sys

from facetouch.app import FaceTouchApp
from facetouch.config import Settings, get_settings
from facetouch.exceptions import DeviceUnavailable, FaceTouchError
from facetouch.ui.window import TouchWindow

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the monitor."""
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    # Reduce noise from third-party libraries
    logging.getLogger("PIL").setLevel(logging.WARNING)
    logging.getLogger("torch").setLevel(logging.WARNING)


def build_app(settings: Settings, mock: bool = False):
    """Create the app, with simulated camera and embedder when mock is set.

    Returns:
        Tuple of (FaceTouchApp, MockCapture or None)
    """
    if not mock:
        return FaceTouchApp(settings), None

    from facetouch.mocks import MockCapture, MockEmbeddingExtractor

    capture = MockCapture(width=settings.camera.width, height=settings.camera.height)
    app = FaceTouchApp(settings, capture=capture, extractor=MockEmbeddingExtractor())
    return app, capture


async def run(settings: Settings, mock: bool = False) -> None:
    """Run the monitor until the window is closed or a signal arrives."""
    app, mock_capture = build_app(settings, mock)
    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()

    def handle_signal(sig, frame):
        logger.info(f"Received signal {sig}")
        loop.call_soon_threadsafe(stop_event.set)

    signal.signal(signal.SIGINT, handle_signal)
    signal.signal(signal.SIGTERM, handle_signal)

    try:
        await app.start()
        window = TouchWindow(
            app,
            settings.ui.window_name,
            frame_interval=settings.ui.frame_interval_seconds,
            mock_capture=mock_capture,
        )
        await window.run(stop_event)
    finally:
        await app.shutdown()


def main():
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Face touch monitor - learns what touching your face looks like and warns you",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    # Run with the default webcam
    python -m facetouch.main

    # Run without camera or model, with debug logging
    python -m facetouch.main --mock --log-level DEBUG

    # Use the second camera, silently
    python -m facetouch.main --device 1 --no-sound
        """,
    )
    parser.add_argument(
        "--device",
        type=int,
        default=None,
        help="Camera device index (default: from settings)",
    )
    parser.add_argument(
        "--mock", "-m",
        action="store_true",
        help="Use a simulated camera and embedder",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--no-sound",
        action="store_true",
        help="Disable the audio alert",
    )
    args = parser.parse_args()

    setup_logging(args.log_level)

    settings = get_settings()
    if args.device is not None:
        settings.camera.device_index = args.device
    if args.no_sound:
        settings.alert.enabled = False

    try:
        asyncio.run(run(settings, mock=args.mock))
    except KeyboardInterrupt:
        print("\nInterrupted")
    except DeviceUnavailable as e:
        print(f"Camera unavailable: {e}")
        sys.exit(1)
    except FaceTouchError as e:
        print(f"Error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
