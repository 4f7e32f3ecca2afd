# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Alert side effects for the detection loop.

- Local audio cue via pygame, played once when a touch starts
- Status label ("touching" / "not touching") updated every cycle

Usage:
    from facetouch.alerting import AudioAlert, TouchAlerter

    audio = AudioAlert("sounds/no.wav")
    await audio.initialize()
    alerter = TouchAlerter(audio)
    alerter.on_cycle(touch_state)
"""

import logging
import os
from typing import Callable, List, Optional

from facetouch.config import MessageSettings
from facetouch.models.state import TouchState

logger = logging.getLogger(__name__)

# Try to import pygame for audio
try:
    import pygame
    PYGAME_AVAILABLE = True
except ImportError:
    PYGAME_AVAILABLE = False
    logger.warning("pygame not available - audio alerts disabled")


class AudioAlert:
    """Local audio alerting via pygame.

    Playback is fire-and-forget: play_alert() starts the sound and returns.
    """

    def __init__(self, alert_sound: str = "sounds/no.wav", volume: int = 90):
        """Initialize audio alerting.

        Args:
            alert_sound: Path to the sound played on each touch
            volume: Default volume (0-100)
        """
        self.alert_sound = alert_sound
        self._volume = max(0, min(100, volume)) / 100.0
        self._initialized = False

    async def initialize(self) -> bool:
        """Initialize pygame mixer.

        Returns:
            True if initialization successful
        """
        if not PYGAME_AVAILABLE:
            logger.warning("Cannot initialize audio - pygame not available")
            return False

        try:
            pygame.mixer.init()
            pygame.mixer.music.set_volume(self._volume)
            self._initialized = True
            logger.info("Audio alerting initialized")
            return True
        except Exception as e:
            logger.error(f"Failed to initialize pygame mixer: {e}")
            return False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    def close(self) -> None:
        """Stop audio and cleanup pygame."""
        if self._initialized:
            pygame.mixer.music.stop()
            pygame.mixer.quit()
            self._initialized = False

    def play_sound(self, sound_path: str, loops: int = 0) -> bool:
        """Play a sound file.

        Args:
            sound_path: Path to sound file
            loops: Number of times to repeat

        Returns:
            True if playback started
        """
        if not self._initialized:
            return False

        if not os.path.exists(sound_path):
            logger.error(f"Sound file not found: {sound_path}")
            return False

        try:
            pygame.mixer.music.load(sound_path)
            pygame.mixer.music.play(loops=loops)
            return True
        except Exception as e:
            logger.error(f"Error playing sound: {e}")
            return False

    def play_alert(self) -> bool:
        """Play the touch warning sound once.

        Returns:
            True if playback started
        """
        return self.play_sound(self.alert_sound, loops=0)


class TouchAlerter:
    """Dispatches touch side effects once per detection cycle.

    The sound plays only on a rising edge of is_touching. The status label
    is pushed to listeners on every cycle, edge or not.
    """

    def __init__(
        self,
        audio: Optional[AudioAlert] = None,
        messages: Optional[MessageSettings] = None,
    ):
        """Initialize touch alerter.

        Args:
            audio: AudioAlert instance, or None for silent operation
            messages: Label texts (defaults from MessageSettings)
        """
        self.audio = audio
        self.messages = messages or MessageSettings()
        self._label_listeners: List[Callable[[str], None]] = []
        self._alerts_fired = 0
        self._label = self.messages.not_touching_label

    @property
    def alerts_fired(self) -> int:
        """Number of rising edges alerted so far."""
        return self._alerts_fired

    @property
    def label(self) -> str:
        """Current status label text."""
        return self._label

    def add_label_listener(self, callback: Callable[[str], None]) -> None:
        """Add a callback receiving the status label after each cycle.

        Args:
            callback: Function(label) to call
        """
        self._label_listeners.append(callback)

    def on_cycle(self, touch_state: TouchState) -> None:
        """Apply side effects for a completed detection cycle.

        Args:
            touch_state: Touch state already updated for this cycle
        """
        if touch_state.rising_edge:
            self._alerts_fired += 1
            logger.info("Face touch detected")
            if self.audio is not None:
                self.audio.play_alert()

        if touch_state.is_touching:
            self._label = self.messages.touching_label
        else:
            self._label = self.messages.not_touching_label

        for callback in self._label_listeners:
            try:
                callback(self._label)
            except Exception as e:
                logger.error(f"Label listener error: {e}")
