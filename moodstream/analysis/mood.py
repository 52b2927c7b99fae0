"""Rule-based mood classification with debounced transitions."""
import time
from dataclasses import replace
from typing import Callable, Optional, Tuple
from moodstream.audio.models import FeatureSet, MoodState, MoodType
from moodstream.core.config import settings
from moodstream.core.logging import logger

# Classification breakpoints (empirically tuned)
SILENCE_ENERGY = 0.03
ENERGETIC_ENERGY = 0.3
ENERGETIC_ZCR = 0.2
HAPPY_ENERGY = 0.2
HAPPY_CENTROID = 0.3
MELANCHOLIC_FLATNESS = 0.15
MELANCHOLIC_ENERGY = 0.15

DEFAULT_CONFIDENCE = 1.0


def candidate_mood(features: FeatureSet, current: MoodType) -> MoodType:
    """
    Pick the mood suggested by a single frame.

    Rules are evaluated in priority order and the first match wins:
    1. Near silence keeps the current mood
    2. Loud and noisy -> energetic
    3. Moderately loud and bright -> happy
    4. Quiet and flat -> melancholic
    5. Anything else -> calm

    Args:
        features: Features of the current frame
        current: Mood currently held by the classifier

    Returns:
        Candidate mood for this frame
    """
    energy = features.energy

    if energy < SILENCE_ENERGY:
        return current
    if energy > ENERGETIC_ENERGY and features.zcr > ENERGETIC_ZCR:
        return MoodType.ENERGETIC
    if energy > HAPPY_ENERGY and features.spectral_centroid > HAPPY_CENTROID:
        return MoodType.HAPPY
    if features.spectral_flatness > MELANCHOLIC_FLATNESS and energy < MELANCHOLIC_ENERGY:
        return MoodType.MELANCHOLIC
    return MoodType.CALM


def transition(state: MoodState, candidate: MoodType, now: float, debounce_seconds: float) -> MoodState:
    """
    Apply the debounce guard to a candidate mood.

    A different candidate is committed only when more than debounce_seconds
    have passed since the last committed change. The first change of a
    session always commits.

    Args:
        state: Current classifier state
        candidate: Mood suggested by the current frame
        now: Monotonic time in seconds
        debounce_seconds: Minimum dwell time between changes

    Returns:
        The next state (the same object when nothing changes)
    """
    if candidate == state.current_mood:
        return state

    last = state.last_transition_timestamp
    if last is not None and now - last <= debounce_seconds:
        return state

    # Keep the timestamp non-decreasing even if the clock steps backwards
    committed_at = now if last is None else max(now, last)
    return replace(state, current_mood=candidate, last_transition_timestamp=committed_at)


class MoodClassifier:
    """Moore machine over the four moods, driven once per frame."""

    def __init__(self, debounce_ms: Optional[float] = None, clock: Optional[Callable[[], float]] = None):
        """
        Initialize the classifier.

        Args:
            debounce_ms: Minimum dwell time between mood changes.
                         If None, uses config value
            clock: Monotonic time source in seconds (defaults to time.monotonic)
        """
        if debounce_ms is None:
            debounce_ms = settings.debounce_ms
        self.debounce_seconds = debounce_ms / 1000.0
        self._clock = clock or time.monotonic
        self.state = MoodState()

    @property
    def current_mood(self) -> MoodType:
        return self.state.current_mood

    def reset(self) -> None:
        """Return to the default state (calm, no transition yet)."""
        self.state = MoodState()

    def classify(self, features: FeatureSet, now: Optional[float] = None) -> Tuple[MoodType, float]:
        """
        Classify one frame and update the mood state.

        Args:
            features: Features of the current frame
            now: Explicit timestamp in seconds; read from the clock if None

        Returns:
            (mood, confidence) after debouncing
        """
        if now is None:
            now = self._clock()

        candidate = candidate_mood(features, self.state.current_mood)
        previous = self.state.current_mood
        self.state = transition(self.state, candidate, now, self.debounce_seconds)

        if self.state.current_mood != previous:
            logger.debug(f"Mood changed: {previous.value} -> {self.state.current_mood.value}")

        return self.state.current_mood, DEFAULT_CONFIDENCE
