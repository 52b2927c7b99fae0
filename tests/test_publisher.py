"""Unit tests for result publishing and subscriptions."""
import pytest
from moodstream.audio.models import AnalysisResult, FeatureSet, MoodType
from moodstream.services.publisher import ResultPublisher


def make_result(energy=0.5) -> AnalysisResult:
    features = FeatureSet(
        energy=energy,
        rms=0.4,
        zcr=0.1,
        spectral_centroid=0.3,
        spectral_flatness=0.2,
        spectral_rolloff=0.6,
    )
    return AnalysisResult(
        features=features,
        mood=MoodType.CALM,
        mood_confidence=1.0,
        dominant_frequency=440.0,
    )


def test_delivery_in_subscription_order():
    """Test that callbacks are invoked in the order they subscribed."""
    publisher = ResultPublisher()
    calls = []
    publisher.subscribe(lambda r: calls.append("first"))
    publisher.subscribe(lambda r: calls.append("second"))
    publisher.subscribe(lambda r: calls.append("third"))

    delivered = publisher.publish(make_result())

    assert calls == ["first", "second", "third"]
    assert delivered == 3


def test_failing_subscriber_is_isolated():
    """Test that a raising callback does not block later callbacks."""
    publisher = ResultPublisher()
    received = []
    broken_calls = []

    def broken(result):
        broken_calls.append(result)
        raise RuntimeError("consumer crashed")

    publisher.subscribe(broken)
    publisher.subscribe(received.append)

    first = make_result(energy=0.1)
    second = make_result(energy=0.2)
    assert publisher.publish(first) == 1
    assert publisher.publish(second) == 1

    # Both frames reached both subscribers, and the broken one stays registered
    assert broken_calls == [first, second]
    assert received == [first, second]
    assert len(publisher) == 2


def test_unsubscribe_is_idempotent():
    """Test that calling an unsubscribe handle twice only removes its own callback."""
    publisher = ResultPublisher()
    received_a, received_b = [], []
    unsubscribe_a = publisher.subscribe(received_a.append)
    publisher.subscribe(received_b.append)

    unsubscribe_a()
    unsubscribe_a()

    publisher.publish(make_result())

    assert received_a == []
    assert len(received_b) == 1
    assert len(publisher) == 1
    assert not unsubscribe_a.active


def test_clear_deactivates_handles():
    """Test that clearing the registry marks every outstanding handle inactive."""
    publisher = ResultPublisher()
    received = []
    first = publisher.subscribe(received.append)
    second = publisher.subscribe(received.append)

    publisher.clear()

    assert not first.active
    assert not second.active
    assert len(publisher) == 0

    # Stale handles stay harmless after new registrations
    third = publisher.subscribe(received.append)
    first()
    publisher.publish(make_result())
    assert len(received) == 1
    assert third.active


def test_unsubscribe_by_handle_deactivates_subscription():
    """Test that removing a registration through the publisher updates its handle."""
    publisher = ResultPublisher()
    subscription = publisher.subscribe(lambda r: None)

    assert publisher.unsubscribe(subscription.handle) is True
    assert not subscription.active
    assert publisher.unsubscribe(subscription.handle) is False


def test_same_callback_subscribed_twice():
    """Test that each registration has its own handle."""
    publisher = ResultPublisher()
    received = []
    first = publisher.subscribe(received.append)
    publisher.subscribe(received.append)

    first()
    publisher.publish(make_result())

    assert len(received) == 1


def test_unsubscribe_during_publish_uses_snapshot():
    """Test that removing a later subscriber mid-delivery still delivers the current frame."""
    publisher = ResultPublisher()
    received = []
    handles = {}

    def remove_next(result):
        handles["second"]()

    publisher.subscribe(remove_next)
    handles["second"] = publisher.subscribe(received.append)

    publisher.publish(make_result())
    assert len(received) == 1

    # Gone for the next frame
    publisher.publish(make_result())
    assert len(received) == 1


def test_self_unsubscribe_during_publish():
    """Test that a callback can remove itself without disturbing others."""
    publisher = ResultPublisher()
    calls = []
    handles = {}

    def once(result):
        calls.append("once")
        handles["once"]()

    handles["once"] = publisher.subscribe(once)
    publisher.subscribe(lambda r: calls.append("always"))

    publisher.publish(make_result())
    publisher.publish(make_result())

    assert calls == ["once", "always", "always"]


def test_subscribe_during_publish_starts_next_frame():
    """Test that a subscriber added mid-delivery only sees later frames."""
    publisher = ResultPublisher()
    late = []

    def add_late(result):
        if not late and len(publisher) == 1:
            publisher.subscribe(late.append)

    publisher.subscribe(add_late)

    publisher.publish(make_result(energy=0.1))
    assert late == []

    second = make_result(energy=0.2)
    publisher.publish(second)
    assert late == [second]


def test_result_serialization():
    """Test the JSON shape delivered to visual consumers."""
    payload = make_result().to_dict()

    assert payload["mood"] == "calm"
    assert payload["moodConfidence"] == 1.0
    assert payload["dominantFrequency"] == 440.0
    assert set(payload["features"]) == {
        "energy", "rms", "zcr", "spectralCentroid", "spectralFlatness", "spectralRolloff"
    }
    assert payload["features"]["spectralRolloff"] == pytest.approx(0.6)
