"""Global sensitivity gain applied during feature extraction."""
import math
from typing import Optional
from moodstream.core.config import settings
from moodstream.core.logging import logger

MIN_SENSITIVITY = 0.0
MAX_SENSITIVITY = 1.0


def clamp_sensitivity(value: float) -> float:
    """Clamp a requested sensitivity into [0, 1]."""
    return max(MIN_SENSITIVITY, min(MAX_SENSITIVITY, float(value)))


class SensitivityControl:
    """Holds the single sensitivity scalar; the last write wins."""

    def __init__(self, value: Optional[float] = None):
        if value is None:
            value = settings.default_sensitivity
        self._value = clamp_sensitivity(value)

    @property
    def value(self) -> float:
        return self._value

    def set(self, value: float) -> float:
        """
        Update the gain.

        Args:
            value: Requested gain, clamped to [0, 1]. NaN is ignored.

        Returns:
            The gain now in effect
        """
        if math.isnan(value):
            logger.warning(f"Ignoring NaN sensitivity, keeping {self._value:.2f}")
            return self._value

        self._value = clamp_sensitivity(value)
        return self._value
