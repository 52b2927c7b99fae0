"""Audio analysis data models and structures."""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional
import numpy as np


@dataclass(frozen=True)
class SpectralFrame:
    """One magnitude-per-bin snapshot of the input spectrum."""
    magnitudes: np.ndarray  # uint8 magnitude per frequency bin (0-255)
    sample_rate: int  # Hz of the signal the transform ran on
    fft_size: int  # transform size used to produce the bins
    timestamp: Optional[float] = None  # monotonic capture time, if known

    def __post_init__(self):
        """Validate frame data."""
        if self.magnitudes.dtype != np.uint8:
            raise ValueError(f"Expected uint8 magnitudes, got {self.magnitudes.dtype}")
        if len(self.magnitudes.shape) != 1:
            raise ValueError(f"Expected 1D magnitudes, got shape {self.magnitudes.shape}")
        if self.magnitudes.size == 0:
            raise ValueError("Spectral frame has no bins")
        if self.sample_rate <= 0 or self.fft_size <= 0:
            raise ValueError(
                f"Invalid transform parameters: sample_rate={self.sample_rate}, fft_size={self.fft_size}"
            )

        # Bins are copied and stored read-only
        if self.magnitudes.flags.writeable:
            magnitudes = self.magnitudes.copy()
            magnitudes.setflags(write=False)
            object.__setattr__(self, "magnitudes", magnitudes)

    @classmethod
    def from_values(cls, values, sample_rate: int, fft_size: int, timestamp: Optional[float] = None) -> "SpectralFrame":
        """Build a frame from any sequence of ints in [0, 255]."""
        array = np.asarray(values)
        if array.size and (array.min() < 0 or array.max() > 255):
            raise ValueError("Magnitudes must be within [0, 255]")
        return cls(
            magnitudes=array.astype(np.uint8),
            sample_rate=sample_rate,
            fft_size=fft_size,
            timestamp=timestamp,
        )

    @property
    def bin_count(self) -> int:
        return int(self.magnitudes.size)


class MoodType(str, Enum):
    """Discrete mood labels produced by the classifier."""
    HAPPY = "happy"
    ENERGETIC = "energetic"
    CALM = "calm"
    MELANCHOLIC = "melancholic"


@dataclass(frozen=True)
class FeatureSet:
    """Six scalar descriptors of one spectral frame."""
    energy: float
    rms: float
    zcr: float
    spectral_centroid: float
    spectral_flatness: float
    spectral_rolloff: float

    def to_dict(self) -> Dict[str, float]:
        """Serialize using the camelCase names visual consumers expect."""
        return {
            "energy": self.energy,
            "rms": self.rms,
            "zcr": self.zcr,
            "spectralCentroid": self.spectral_centroid,
            "spectralFlatness": self.spectral_flatness,
            "spectralRolloff": self.spectral_rolloff,
        }


@dataclass(frozen=True)
class MoodState:
    """Persistent classifier state for one analysis session."""
    current_mood: MoodType = MoodType.CALM
    last_transition_timestamp: Optional[float] = None  # None until the first committed change


@dataclass(frozen=True)
class AnalysisResult:
    """Everything published to subscribers for a single frame."""
    features: FeatureSet
    mood: MoodType
    mood_confidence: float
    dominant_frequency: float

    def to_dict(self) -> dict:
        return {
            "features": self.features.to_dict(),
            "mood": self.mood.value,
            "moodConfidence": self.mood_confidence,
            "dominantFrequency": self.dominant_frequency,
        }


@dataclass
class SessionStatus:
    """Snapshot of an analysis session for status endpoints."""
    active: bool
    sensitivity: float
    mood: MoodType
    subscribers: int
    frames_published: int = 0
