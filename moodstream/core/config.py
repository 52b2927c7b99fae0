"""Configuration settings for the mood analysis service."""
from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000

    # Capture / spectrum analyser settings
    sample_rate: int = 44100  # Hz
    fft_size: int = 256  # transform size, yields fft_size / 2 bins
    smoothing_time_constant: float = 0.8  # 0.0-1.0, higher = slower spectrum
    min_decibels: float = -100.0
    max_decibels: float = -30.0
    input_device: Optional[str] = None  # sounddevice device name or index

    # Analysis settings
    frame_rate_hz: float = 60.0  # ticks per second of the frame loop
    noise_floor: float = 0.03  # subtracted from mean magnitude before gain
    debounce_ms: int = 100  # minimum dwell time between mood changes
    default_sensitivity: float = 0.8  # 0.0-1.0

    # Performance settings
    processing_timeout_ms: int = 16  # per-frame budget at 60 Hz
    result_queue_size: int = 120  # per-consumer buffered results (~2 s)

    # Start microphone capture when the server boots
    autostart_capture: bool = False

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
