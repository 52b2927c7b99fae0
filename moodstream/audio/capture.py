"""Spectral frame sources: microphone capture and pushed PCM streams."""
from typing import Optional, Tuple
import numpy as np
from moodstream.audio.analyser import SpectrumAnalyser
from moodstream.audio.ingestion import pcm_bytes_to_samples
from moodstream.audio.models import SpectralFrame
from moodstream.core.config import settings
from moodstream.core.logging import logger


class SpectrumSource:
    """
    Interface consumed by an AnalysisSession.

    initialize() acquires the underlying resources and reports success as a
    (bool, message) pair. read_frame() returns the current frame or None if
    nothing is available yet. dispose() releases resources and may be called
    any number of times.
    """

    def initialize(self) -> Tuple[bool, str]:
        raise NotImplementedError

    def read_frame(self) -> Optional[SpectralFrame]:
        raise NotImplementedError

    def dispose(self) -> None:
        raise NotImplementedError


class MicrophoneSource(SpectrumSource):
    """Captures from an input device with sounddevice and analyses it."""

    def __init__(self, analyser: Optional[SpectrumAnalyser] = None, device=None):
        """
        Initialize the source.

        Args:
            analyser: Spectrum analyser to feed (built from config if None)
            device: sounddevice input device (defaults to config value)
        """
        self.analyser = analyser or SpectrumAnalyser()
        self.device = device if device is not None else settings.input_device
        self._stream = None

    def initialize(self) -> Tuple[bool, str]:
        if self._stream is not None:
            return True, "Microphone already capturing"

        try:
            import sounddevice as sd
        except (ImportError, OSError) as e:
            logger.error(f"Audio backend unavailable: {e}")
            return False, f"Audio backend unavailable: {e}"

        stream = None
        try:
            stream = sd.InputStream(
                samplerate=self.analyser.sample_rate,
                channels=1,
                dtype="float32",
                device=self.device,
                callback=self._on_audio,
            )
            stream.start()
        except sd.PortAudioError as e:
            self._close_failed(stream)
            logger.error(f"Failed to open input device {self.device!r}: {e}")
            return False, f"Microphone unavailable or permission denied: {e}"
        except ValueError as e:
            self._close_failed(stream)
            logger.error(f"Invalid input device {self.device!r}: {e}")
            return False, f"Invalid input device: {e}"

        self._stream = stream
        self.analyser.reset()
        logger.info(
            f"Microphone capture started: {self.analyser.sample_rate} Hz, "
            f"fft_size={self.analyser.fft_size}, device={self.device!r}"
        )
        return True, "Microphone capturing"

    def _close_failed(self, stream) -> None:
        """Close a stream that was built but could not be started."""
        if stream is None:
            return
        try:
            stream.close()
        except Exception as e:
            logger.warning(f"Error closing unstarted input stream: {e}")

    def _on_audio(self, indata: np.ndarray, frames: int, time_info, status) -> None:
        """sounddevice callback, runs on the audio thread."""
        if status:
            logger.debug(f"Input stream status: {status}")
        self.analyser.push(indata[:, 0])

    def read_frame(self) -> Optional[SpectralFrame]:
        if self._stream is None:
            return None
        return self.analyser.get_frame()

    def dispose(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        try:
            stream.stop()
            stream.close()
        except Exception as e:
            logger.warning(f"Error closing input stream: {e}")
        logger.info("Microphone capture stopped")


class PcmStreamSource(SpectrumSource):
    """Analyses int16 PCM pushed by a remote client."""

    def __init__(self, analyser: Optional[SpectrumAnalyser] = None):
        self.analyser = analyser or SpectrumAnalyser()
        self._open = False

    def initialize(self) -> Tuple[bool, str]:
        self._open = True
        self.analyser.reset()
        return True, "PCM stream ready"

    def push_pcm(self, data: bytes) -> None:
        """Feed raw little-endian int16 mono bytes into the analyser."""
        if not self._open:
            return
        self.analyser.push(pcm_bytes_to_samples(data))

    def read_frame(self) -> Optional[SpectralFrame]:
        if not self._open:
            return None
        return self.analyser.get_frame()

    def dispose(self) -> None:
        if self._open:
            self._open = False
            self.analyser.reset()
