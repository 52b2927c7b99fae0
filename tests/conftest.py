"""Shared fixtures: scripted frame sources standing in for audio capture."""
import pytest
import numpy as np
from moodstream.audio.capture import SpectrumSource
from moodstream.audio.models import SpectralFrame

N_BINS = 128


class ScriptedSource(SpectrumSource):
    """Frame source that replays a list of frames (optionally forever)."""

    def __init__(self, frames=None, fail_message=None, repeat=False):
        self.frames = list(frames or [])
        self.fail_message = fail_message
        self.repeat = repeat
        self.initialize_calls = 0
        self.dispose_calls = 0
        self._index = 0

    def initialize(self):
        self.initialize_calls += 1
        if self.fail_message:
            return False, self.fail_message
        return True, "scripted source ready"

    def read_frame(self):
        if not self.frames:
            return None
        if self._index >= len(self.frames):
            if not self.repeat:
                return None
            self._index = 0
        frame = self.frames[self._index]
        self._index += 1
        return frame

    def dispose(self):
        self.dispose_calls += 1


def build_frame(magnitudes) -> SpectralFrame:
    return SpectralFrame.from_values(magnitudes, sample_rate=44100, fft_size=256)


@pytest.fixture
def make_source():
    """Factory for scripted sources."""
    return ScriptedSource


@pytest.fixture
def frames():
    """Frames that drive the classifier to each mood (at sensitivity 1.0 unless noted)."""
    half = np.zeros(N_BINS)
    half[:N_BINS // 2] = 255
    return {
        "silent": build_frame(np.zeros(N_BINS)),
        # bright, no sign changes -> happy
        "saturated": build_frame(np.full(N_BINS, 255)),
        # sign change on every bin -> energetic
        "alternating": build_frame(np.tile([255, 0], N_BINS // 2)),
        # dark, single sign change -> calm
        "half": build_frame(half),
        # quiet and flat -> melancholic at sensitivity 0.5
        "quiet": build_frame(np.full(N_BINS, 40)),
    }
