"""Unit tests for mood classification and debounce."""
import pytest
from moodstream.audio.models import FeatureSet, MoodState, MoodType
from moodstream.analysis.mood import MoodClassifier, candidate_mood, transition


def make_features(energy=0.0, zcr=0.0, centroid=0.0, flatness=0.0) -> FeatureSet:
    return FeatureSet(
        energy=energy,
        rms=0.0,
        zcr=zcr,
        spectral_centroid=centroid,
        spectral_flatness=flatness,
        spectral_rolloff=0.0,
    )


SILENT = make_features(energy=0.01)
ENERGETIC = make_features(energy=0.5, zcr=0.3, centroid=0.5)
HAPPY = make_features(energy=0.25, zcr=0.1, centroid=0.4)
MELANCHOLIC = make_features(energy=0.1, flatness=0.2)
CALM = make_features(energy=0.1, flatness=0.1)


def test_candidate_rules():
    """Test each classification rule in isolation."""
    assert candidate_mood(ENERGETIC, MoodType.CALM) == MoodType.ENERGETIC
    assert candidate_mood(HAPPY, MoodType.CALM) == MoodType.HAPPY
    assert candidate_mood(MELANCHOLIC, MoodType.CALM) == MoodType.MELANCHOLIC
    assert candidate_mood(CALM, MoodType.HAPPY) == MoodType.CALM


def test_silence_keeps_current_mood():
    """Test that energy below 0.03 never proposes a different mood."""
    for mood in MoodType:
        assert candidate_mood(SILENT, mood) == mood


def test_energetic_takes_priority_over_happy():
    """Test rule order: loud, noisy and bright frames are energetic."""
    features = make_features(energy=0.9, zcr=0.5, centroid=0.9, flatness=0.9)

    assert candidate_mood(features, MoodType.CALM) == MoodType.ENERGETIC


def test_thresholds_are_strict():
    """Test that values exactly on a breakpoint do not satisfy the rule."""
    # energy == 0.3 is not "> 0.3", centroid too low for happy
    features = make_features(energy=0.3, zcr=0.5, centroid=0.1)
    assert candidate_mood(features, MoodType.HAPPY) == MoodType.CALM

    # flatness == 0.15 is not "> 0.15"
    features = make_features(energy=0.1, flatness=0.15)
    assert candidate_mood(features, MoodType.HAPPY) == MoodType.CALM


def test_first_change_commits_immediately():
    """Test that the first change of a session is not debounced."""
    classifier = MoodClassifier(debounce_ms=100)

    mood, confidence = classifier.classify(HAPPY, now=0.01)

    assert mood == MoodType.HAPPY
    assert confidence == 1.0
    assert classifier.state.last_transition_timestamp == 0.01


def test_debounce_suppresses_rapid_changes():
    """Test that a second change within the threshold is not committed."""
    classifier = MoodClassifier(debounce_ms=100)

    classifier.classify(HAPPY, now=10.0)
    mood, _ = classifier.classify(ENERGETIC, now=10.05)

    assert mood == MoodType.HAPPY
    assert classifier.state.last_transition_timestamp == 10.0

    # Once the threshold has passed the change is accepted
    mood, _ = classifier.classify(ENERGETIC, now=10.2)

    assert mood == MoodType.ENERGETIC
    assert classifier.state.last_transition_timestamp == 10.2


def test_debounce_requires_strictly_more_than_threshold():
    """Test that a change exactly at the threshold is still rejected."""
    state = MoodState(current_mood=MoodType.HAPPY, last_transition_timestamp=5.0)

    assert transition(state, MoodType.CALM, 5.1, 0.1) is state
    assert transition(state, MoodType.CALM, 5.11, 0.1).current_mood == MoodType.CALM


def test_unchanged_candidate_keeps_timestamp():
    """Test that staying in the same mood does not touch the timestamp."""
    classifier = MoodClassifier(debounce_ms=100)
    classifier.classify(HAPPY, now=1.0)

    classifier.classify(HAPPY, now=5.0)
    classifier.classify(SILENT, now=9.0)

    assert classifier.current_mood == MoodType.HAPPY
    assert classifier.state.last_transition_timestamp == 1.0


def test_timestamp_is_non_decreasing():
    """Test that a clock stepping backwards cannot move the timestamp back."""
    state = MoodState(current_mood=MoodType.HAPPY, last_transition_timestamp=None)
    state = transition(state, MoodType.CALM, 3.0, 0.1)

    # Elapsed time is negative, so the change is held back
    assert transition(state, MoodType.HAPPY, 2.0, 0.1) is state
    assert state.last_transition_timestamp == 3.0


def test_injected_clock_is_used():
    """Test that the classifier reads time from the injected clock."""
    times = iter([1.0, 1.02, 1.5])
    classifier = MoodClassifier(debounce_ms=100, clock=lambda: next(times))

    assert classifier.classify(HAPPY)[0] == MoodType.HAPPY
    assert classifier.classify(MELANCHOLIC)[0] == MoodType.HAPPY
    assert classifier.classify(MELANCHOLIC)[0] == MoodType.MELANCHOLIC


def test_reset_restores_default_state():
    """Test that reset returns to calm with no transition recorded."""
    classifier = MoodClassifier(debounce_ms=100)
    classifier.classify(ENERGETIC, now=1.0)

    classifier.reset()

    assert classifier.state == MoodState()
    assert classifier.current_mood == MoodType.CALM


def test_default_debounce_from_config():
    """Test that the debounce threshold defaults to the configured value."""
    from moodstream.core.config import settings

    classifier = MoodClassifier()

    assert classifier.debounce_seconds == pytest.approx(settings.debounce_ms / 1000.0)
