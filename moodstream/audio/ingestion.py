"""Helper functions for ingesting and converting incoming PCM audio."""
import numpy as np
from typing import Optional
from moodstream.core.logging import logger


def pcm_bytes_to_samples(data: bytes) -> np.ndarray:
    """
    Convert raw PCM int16 bytes to float samples.

    Args:
        data: Raw little-endian PCM int16 bytes (mono)

    Returns:
        float32 samples in [-1, 1)
    """
    pcm_array = np.frombuffer(data, dtype="<i2")
    return pcm_array.astype(np.float32) / 32768.0


def validate_audio_data(data: bytes, expected_size: Optional[int] = None) -> bool:
    """
    Validate incoming audio data.

    Args:
        data: Raw audio bytes
        expected_size: Expected size in bytes (optional)

    Returns:
        True if valid, False otherwise
    """
    if len(data) == 0:
        logger.warning("Received empty audio data")
        return False

    # int16 = 2 bytes per sample
    if len(data) % 2 != 0:
        logger.warning(f"Audio data size {len(data)} is not multiple of 2 bytes")
        return False

    if expected_size and len(data) != expected_size:
        logger.warning(f"Audio data size {len(data)} != expected {expected_size}")
        return False

    return True
