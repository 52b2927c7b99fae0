"""Dominant frequency estimation from spectral frames."""
from typing import Optional
import numpy as np
from moodstream.audio.models import SpectralFrame


def estimate_dominant_frequency(frame: Optional[SpectralFrame]) -> float:
    """
    Estimate the frequency of the loudest bin.

    Ties resolve to the lowest bin index. The bin index is converted with
    index * sample_rate / (fft_size * 2).

    Args:
        frame: Most recent spectral frame, or None if none is available yet

    Returns:
        Frequency in Hz (0.0 when there is no frame)
    """
    if frame is None:
        return 0.0

    # argmax returns the first occurrence of the maximum
    peak_index = int(np.argmax(frame.magnitudes))
    return float(peak_index * frame.sample_rate / (frame.fft_size * 2))
