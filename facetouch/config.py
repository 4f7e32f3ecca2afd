# =============================================================================
# DISCLAIMER: This software is NOT a medical device and is NOT intended for
# medical monitoring, diagnosis, or treatment. This is a proof of concept for
# educational purposes only. Do not rely on this system for health decisions.
# =============================================================================
"""Configuration management for the face touch monitor.

Uses Pydantic Settings for environment variable and .env file support.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class DetectionSettings(BaseSettings):
    """Detection loop settings."""

    model_config = SettingsConfigDict(env_prefix="FACETOUCH_DETECTION_")

    threshold: float = Field(
        default=0.9,
        ge=0.0,
        le=1.0,
        description="Touching confidence must exceed this to count as a touch",
    )
    neighbors: int = Field(
        default=3,
        ge=1,
        description="Number of nearest stored examples that vote on a prediction",
    )


class TrainingSettings(BaseSettings):
    """Guided recording session settings."""

    model_config = SettingsConfigDict(env_prefix="FACETOUCH_TRAINING_")

    ticks: int = Field(
        default=50,
        ge=1,
        description="Examples recorded per session (one per tick)",
    )
    countdown_steps: int = Field(
        default=3,
        ge=0,
        description="Countdown phases shown before recording starts",
    )
    countdown_step_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Duration of each countdown phase",
    )
    tick_delay_seconds: float = Field(
        default=0.1,
        ge=0.0,
        description="Pacing delay after each recorded example",
    )
    max_tick_retries: int = Field(
        default=3,
        ge=0,
        description="Consecutive extraction failures tolerated before a session aborts",
    )


class CameraSettings(BaseSettings):
    """Capture device settings."""

    model_config = SettingsConfigDict(env_prefix="FACETOUCH_CAMERA_")

    device_index: int = Field(
        default=0,
        ge=0,
        description="OpenCV capture device index",
    )
    width: int = Field(default=640, description="Requested frame width")
    height: int = Field(default=480, description="Requested frame height")
    mirror: bool = Field(
        default=True,
        description="Flip frames horizontally (selfie view)",
    )


class EmbeddingSettings(BaseSettings):
    """Embedding model settings."""

    model_config = SettingsConfigDict(
        env_prefix="FACETOUCH_EMBEDDING_", protected_namespaces=()
    )

    model_name: str = Field(
        default="mobilenet_v2",
        description="torchvision model used as the feature extractor",
    )
    input_size: int = Field(
        default=224,
        description="Square input resolution fed to the model",
    )
    device: str = Field(
        default="cpu",
        description="Torch device for inference ('cpu' or 'cuda:0')",
    )


class AlertSettings(BaseSettings):
    """Audio alert settings."""

    model_config = SettingsConfigDict(env_prefix="FACETOUCH_ALERT_")

    enabled: bool = Field(default=True, description="Play a sound on each touch")
    sound_file: str = Field(
        default="sounds/no.wav",
        description="Sound played when a touch starts",
    )
    volume: int = Field(default=90, ge=0, le=100, description="Volume (0-100)")


class MessageSettings(BaseSettings):
    """Status label and phase texts."""

    model_config = SettingsConfigDict(env_prefix="FACETOUCH_MESSAGES_")

    touching_label: str = "You touched your face!"
    not_touching_label: str = "Do Not Touch Your Face"
    waiting_for_camera: str = "Waiting for webcam access..."
    loading_model: str = "Activating face touching AI..."
    record_not_touching: str = "1. Take a video not touching your face."
    recording_not_touching: str = "Recording... do not touch your face"
    record_touching: str = "2. Take a video continuously touching your face (with clean hands)"
    recording_touching: str = "Don't take your hands off your face until it's done!"
    confirm_ready: str = "Training done. Press 'r' when you are ready!"
    detecting: str = "Watching..."
    device_unavailable: str = "No webcam available. Check the device and permissions."


class UISettings(BaseSettings):
    """OpenCV window settings."""

    model_config = SettingsConfigDict(env_prefix="FACETOUCH_UI_")

    window_name: str = "Do Not Touch Your Face"
    frame_interval_seconds: float = Field(
        default=0.03,
        ge=0.0,
        description="Delay between window refreshes",
    )


class Settings(BaseSettings):
    """Root settings for the face touch monitor.

    Settings are loaded from environment variables with FACETOUCH_ prefix,
    or from a .env file in the working directory.

    Example environment variables:
        FACETOUCH_DETECTION_THRESHOLD=0.9
        FACETOUCH_TRAINING_TICKS=50
        FACETOUCH_CAMERA_DEVICE_INDEX=1
    """

    model_config = SettingsConfigDict(
        env_prefix="FACETOUCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # Nested settings
    detection: DetectionSettings = Field(default_factory=DetectionSettings)
    training: TrainingSettings = Field(default_factory=TrainingSettings)
    camera: CameraSettings = Field(default_factory=CameraSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    alert: AlertSettings = Field(default_factory=AlertSettings)
    messages: MessageSettings = Field(default_factory=MessageSettings)
    ui: UISettings = Field(default_factory=UISettings)


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
