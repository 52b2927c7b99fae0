"""Feature extraction from spectral frames for mood classification."""
from typing import Optional
import numpy as np
from moodstream.audio.models import SpectralFrame, FeatureSet
from moodstream.core.config import settings

# Raw byte value separating "positive" from "negative" bins for ZCR
ZCR_THRESHOLD = 128
# Bins at or below this normalized magnitude are excluded from flatness
FLATNESS_MIN_AMPLITUDE = 0.01
# Fraction of total magnitude that defines the rolloff bin
ROLLOFF_FRACTION = 0.85
ENERGY_GAIN = 2.0


def normalize_magnitudes(frame: SpectralFrame) -> np.ndarray:
    """Scale byte magnitudes to floats in [0, 1]."""
    return frame.magnitudes.astype(np.float64) / 255.0


def extract_energy(amplitudes: np.ndarray, sensitivity: float, noise_floor: float) -> float:
    """
    Extract gated, sensitivity-scaled energy.

    The mean normalized magnitude is reduced by the noise floor (never below
    zero), doubled, scaled by the sensitivity gain and capped at 1.0.

    Args:
        amplitudes: Normalized magnitudes (0.0 to 1.0)
        sensitivity: Gain in [0, 1]
        noise_floor: Value subtracted from the mean before gain

    Returns:
        Energy (0.0 to 1.0)
    """
    if amplitudes.size == 0:
        return 0.0

    gated = max(0.0, float(np.mean(amplitudes)) - noise_floor)
    return min(1.0, max(0.0, gated * ENERGY_GAIN * sensitivity))


def extract_rms(amplitudes: np.ndarray) -> float:
    """
    Extract RMS of the normalized magnitudes.

    Sensitivity is not applied.

    Args:
        amplitudes: Normalized magnitudes (0.0 to 1.0)

    Returns:
        RMS value (0.0 to 1.0)
    """
    if amplitudes.size == 0:
        return 0.0

    return float(np.sqrt(np.mean(amplitudes ** 2)))


def extract_zero_crossing_rate(magnitudes: np.ndarray) -> float:
    """
    Extract zero-crossing rate across consecutive bins.

    A bin counts as positive when its raw byte value is above 128. The
    number of sign changes between neighbouring bins is divided by the
    bin count.

    Args:
        magnitudes: Raw uint8 magnitudes

    Returns:
        Zero-crossing rate (0.0 to 1.0)
    """
    if magnitudes.size < 2:
        return 0.0

    signs = np.where(magnitudes > ZCR_THRESHOLD, 1, -1)
    crossings = np.count_nonzero(signs[1:] != signs[:-1])
    return float(crossings / magnitudes.size)


def extract_spectral_centroid(amplitudes: np.ndarray) -> float:
    """
    Extract spectral centroid as a fraction of the bin count.

    Higher values indicate brighter/more high-frequency content.

    Args:
        amplitudes: Normalized magnitudes (0.0 to 1.0)

    Returns:
        Magnitude-weighted mean bin index divided by bin count, 0.0 for silence
    """
    total = float(np.sum(amplitudes))
    if total == 0:
        return 0.0

    indices = np.arange(amplitudes.size, dtype=np.float64)
    return float(np.sum(indices * amplitudes) / total / amplitudes.size)


def extract_spectral_flatness(amplitudes: np.ndarray) -> float:
    """
    Extract spectral flatness (geometric mean / arithmetic mean).

    Only bins above FLATNESS_MIN_AMPLITUDE take part, which keeps log(0)
    out of the geometric mean. Values near 1.0 mean a noise-like spectrum,
    values near 0.0 a tonal one.

    Args:
        amplitudes: Normalized magnitudes (0.0 to 1.0)

    Returns:
        Spectral flatness (0.0 to 1.0), 0.0 when no bin qualifies
    """
    qualifying = amplitudes[amplitudes > FLATNESS_MIN_AMPLITUDE]
    if qualifying.size == 0:
        return 0.0

    geometric_mean = float(np.exp(np.mean(np.log(qualifying))))
    arithmetic_mean = float(np.mean(qualifying))
    if arithmetic_mean <= 0:
        return 0.0

    return geometric_mean / arithmetic_mean


def extract_spectral_rolloff(magnitudes: np.ndarray) -> float:
    """
    Extract spectral rolloff as a fraction of the bin count.

    Args:
        magnitudes: Raw uint8 magnitudes

    Returns:
        Index of the first bin whose cumulative magnitude reaches
        ROLLOFF_FRACTION of the total, divided by bin count. 0.0 for silence.
    """
    total = int(np.sum(magnitudes, dtype=np.int64))
    if total == 0:
        return 0.0

    cumulative = np.cumsum(magnitudes, dtype=np.int64) / total
    index = int(np.argmax(cumulative >= ROLLOFF_FRACTION))
    return float(index / magnitudes.size)


def extract_features(frame: SpectralFrame, sensitivity: float, noise_floor: Optional[float] = None) -> FeatureSet:
    """
    Extract the full feature set from one spectral frame.

    Features extracted:
    - Energy (noise-gated, sensitivity-scaled)
    - RMS of normalized magnitudes
    - Zero-crossing rate across bins
    - Spectral centroid (brightness)
    - Spectral flatness (tonal vs noisy)
    - Spectral rolloff (85% magnitude point)

    Args:
        frame: Spectral frame to analyze
        sensitivity: Gain in [0, 1] applied to energy only
        noise_floor: Energy gate. If None, uses config value

    Returns:
        FeatureSet for this frame
    """
    if noise_floor is None:
        noise_floor = settings.noise_floor

    amplitudes = normalize_magnitudes(frame)

    return FeatureSet(
        energy=extract_energy(amplitudes, sensitivity, noise_floor),
        rms=extract_rms(amplitudes),
        zcr=extract_zero_crossing_rate(frame.magnitudes),
        spectral_centroid=extract_spectral_centroid(amplitudes),
        spectral_flatness=extract_spectral_flatness(amplitudes),
        spectral_rolloff=extract_spectral_rolloff(frame.magnitudes),
    )
