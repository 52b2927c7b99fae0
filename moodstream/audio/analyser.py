"""Byte-scaled magnitude spectrum of the most recent audio samples."""
import threading
import time
from typing import Optional
import numpy as np
from moodstream.audio.models import SpectralFrame
from moodstream.core.config import settings


class SpectrumAnalyser:
    """
    Rolling-window spectrum analyser producing SpectralFrames.

    Behaves like a browser AnalyserNode: the last fft_size samples are
    Blackman-windowed and transformed, magnitudes are smoothed over time,
    converted to decibels and mapped from [min_decibels, max_decibels]
    onto 0-255.
    """

    def __init__(
        self,
        fft_size: Optional[int] = None,
        sample_rate: Optional[int] = None,
        smoothing_time_constant: Optional[float] = None,
        min_decibels: Optional[float] = None,
        max_decibels: Optional[float] = None,
    ):
        """
        Initialize the analyser. Any argument left as None uses the config value.

        Args:
            fft_size: Transform size, power of two >= 32
            sample_rate: Sample rate of the pushed audio in Hz
            smoothing_time_constant: 0.0-1.0, weight of the previous spectrum
            min_decibels: Level mapped to byte 0
            max_decibels: Level mapped to byte 255
        """
        self.fft_size = fft_size if fft_size is not None else settings.fft_size
        self.sample_rate = sample_rate if sample_rate is not None else settings.sample_rate
        self.smoothing_time_constant = (
            smoothing_time_constant if smoothing_time_constant is not None
            else settings.smoothing_time_constant
        )
        self.min_decibels = min_decibels if min_decibels is not None else settings.min_decibels
        self.max_decibels = max_decibels if max_decibels is not None else settings.max_decibels

        if self.fft_size < 32 or self.fft_size & (self.fft_size - 1):
            raise ValueError(f"fft_size must be a power of two >= 32, got {self.fft_size}")
        if self.sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {self.sample_rate}")
        if not 0.0 <= self.smoothing_time_constant <= 1.0:
            raise ValueError(f"smoothing_time_constant must be in [0, 1], got {self.smoothing_time_constant}")
        if self.min_decibels >= self.max_decibels:
            raise ValueError(
                f"min_decibels ({self.min_decibels}) must be below max_decibels ({self.max_decibels})"
            )

        self._window = np.blackman(self.fft_size)
        self._lock = threading.Lock()
        self.reset()

    @property
    def frequency_bin_count(self) -> int:
        return self.fft_size // 2

    def reset(self) -> None:
        """Drop buffered samples and smoothing history."""
        with self._lock:
            self._samples = np.zeros(self.fft_size, dtype=np.float64)
            self._smoothed = np.zeros(self.frequency_bin_count, dtype=np.float64)
            self._samples_seen = 0

    def push(self, samples: np.ndarray) -> None:
        """
        Append float samples in [-1, 1] to the rolling window.

        Safe to call from an audio callback thread.
        """
        samples = np.asarray(samples, dtype=np.float64).ravel()
        if samples.size == 0:
            return

        with self._lock:
            if samples.size >= self.fft_size:
                self._samples[:] = samples[-self.fft_size:]
            else:
                self._samples = np.roll(self._samples, -samples.size)
                self._samples[-samples.size:] = samples
            self._samples_seen += samples.size

    def get_frame(self) -> Optional[SpectralFrame]:
        """
        Compute the byte magnitude spectrum of the current window.

        Each call advances the temporal smoothing by one step.

        Returns:
            SpectralFrame, or None before any sample has been pushed
        """
        with self._lock:
            if self._samples_seen == 0:
                return None

            spectrum = np.fft.rfft(self._samples * self._window)
            magnitude = np.abs(spectrum[:self.frequency_bin_count]) / self.fft_size

            tau = self.smoothing_time_constant
            self._smoothed = tau * self._smoothed + (1.0 - tau) * magnitude
            smoothed = self._smoothed.copy()

        with np.errstate(divide="ignore"):
            decibels = 20.0 * np.log10(smoothed)

        scale = 255.0 / (self.max_decibels - self.min_decibels)
        scaled = np.floor((decibels - self.min_decibels) * scale)
        magnitudes = np.clip(scaled, 0, 255).astype(np.uint8)

        return SpectralFrame(
            magnitudes=magnitudes,
            sample_rate=self.sample_rate,
            fft_size=self.fft_size,
            timestamp=time.monotonic(),
        )
