"""Per-frame analysis pipeline orchestrator."""
import time
from typing import Optional
from moodstream.audio.models import SpectralFrame, AnalysisResult
from moodstream.analysis.features import extract_features
from moodstream.analysis.frequency import estimate_dominant_frequency
from moodstream.analysis.mood import MoodClassifier
from moodstream.core.config import settings
from moodstream.core.logging import logger


def analyze_frame(
    frame: SpectralFrame,
    classifier: MoodClassifier,
    sensitivity: float,
    noise_floor: Optional[float] = None,
    now: Optional[float] = None,
) -> AnalysisResult:
    """
    Run one spectral frame through the analysis pipeline.

    Synchronous and O(N) in the bin count so it keeps up with the frame
    source. Target latency: one frame at the configured frame rate.

    The pipeline applies steps in order:
    1. Feature extraction (sensitivity applied to energy)
    2. Mood classification with debounce (updates classifier state)
    3. Dominant frequency estimation

    Args:
        frame: Input spectral frame
        classifier: Session classifier holding the mood state
        sensitivity: Current gain in [0, 1]
        noise_floor: Energy gate (defaults to config value)
        now: Timestamp for the debounce guard (defaults to classifier clock)

    Returns:
        Immutable result for this frame
    """
    start_time = time.perf_counter()

    features = extract_features(frame, sensitivity, noise_floor)
    mood, confidence = classifier.classify(features, now=now)
    dominant_frequency = estimate_dominant_frequency(frame)

    # Log processing time if it exceeds threshold
    processing_time = (time.perf_counter() - start_time) * 1000
    if processing_time > settings.processing_timeout_ms:
        logger.warning(
            f"Frame analysis took {processing_time:.2f}ms (target: {settings.processing_timeout_ms}ms)"
        )

    return AnalysisResult(
        features=features,
        mood=mood,
        mood_confidence=confidence,
        dominant_frequency=dominant_frequency,
    )
