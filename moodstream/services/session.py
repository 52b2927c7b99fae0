"""Analysis session: owns a frame source and drives the per-frame pipeline."""
import asyncio
from typing import Callable, Optional, Tuple
from moodstream.audio.capture import SpectrumSource
from moodstream.audio.models import AnalysisResult, MoodType, SessionStatus
from moodstream.analysis.mood import MoodClassifier
from moodstream.analysis.pipeline import analyze_frame
from moodstream.analysis.sensitivity import SensitivityControl
from moodstream.services.publisher import ResultPublisher, ResultCallback, Subscription
from moodstream.core.config import settings
from moodstream.core.logging import logger


class AnalysisSession:
    """
    One live analysis session.

    The session pulls a frame from its source on every tick, runs the
    analysis pipeline and publishes exactly one result per frame. Mood state
    and sensitivity are the only state kept between frames.
    """

    def __init__(
        self,
        source: SpectrumSource,
        noise_floor: Optional[float] = None,
        debounce_ms: Optional[float] = None,
        sensitivity: Optional[float] = None,
        clock: Optional[Callable[[], float]] = None,
        publisher: Optional[ResultPublisher] = None,
    ):
        """
        Initialize the session (not started).

        Args:
            source: Spectral frame source (external collaborator)
            noise_floor: Energy gate (defaults to config value)
            debounce_ms: Mood debounce threshold (defaults to config value)
            sensitivity: Initial gain (defaults to config value)
            clock: Monotonic time source for the debounce guard
            publisher: Subscriber registry (a fresh one if None)
        """
        self.source = source
        self.noise_floor = noise_floor if noise_floor is not None else settings.noise_floor
        self.classifier = MoodClassifier(debounce_ms=debounce_ms, clock=clock)
        self._sensitivity = SensitivityControl(sensitivity)
        self.publisher = publisher or ResultPublisher()
        self._active = False
        self.frames_published = 0

    @property
    def is_active(self) -> bool:
        return self._active

    @property
    def sensitivity(self) -> float:
        return self._sensitivity.value

    @property
    def current_mood(self) -> MoodType:
        return self.classifier.current_mood

    def set_sensitivity(self, value: float) -> float:
        """Set the gain used for energy extraction, clamped to [0, 1]."""
        return self._sensitivity.set(value)

    def subscribe(self, callback: ResultCallback) -> Subscription:
        return self.publisher.subscribe(callback)

    def start(self) -> Tuple[bool, str]:
        """
        Acquire the source and activate the session.

        Returns:
            (success, message) as reported by the source
        """
        if self._active:
            return True, "Session already active"

        success, message = self.source.initialize()
        if not success:
            logger.warning(f"Analysis session failed to start: {message}")
            return False, message

        self.classifier.reset()
        self.frames_published = 0
        self._active = True
        logger.info(f"Analysis session started: {message}")
        return True, message

    def stop(self) -> None:
        """Deactivate and release the source. Safe to call at any time."""
        if not self._active:
            return

        self._active = False
        self.source.dispose()
        logger.info(f"Analysis session stopped after {self.frames_published} frames")

    def tick(self, now: Optional[float] = None) -> Optional[AnalysisResult]:
        """
        Process the current frame, if any, and publish its result.

        Args:
            now: Explicit timestamp for the debounce guard

        Returns:
            The published result, or None when inactive or no frame is ready
        """
        if not self._active:
            return None

        frame = self.source.read_frame()
        if frame is None:
            return None

        result = analyze_frame(
            frame,
            self.classifier,
            self.sensitivity,
            noise_floor=self.noise_floor,
            now=now,
        )
        self.frames_published += 1
        self.publisher.publish(result)
        return result

    async def run(self, frame_rate_hz: Optional[float] = None) -> None:
        """
        Tick at a fixed cadence until the session is stopped.

        Args:
            frame_rate_hz: Ticks per second (defaults to config value)
        """
        if frame_rate_hz is None:
            frame_rate_hz = settings.frame_rate_hz
        interval = 1.0 / frame_rate_hz
        loop = asyncio.get_running_loop()
        next_tick = loop.time()

        logger.info(f"Frame loop running at {frame_rate_hz:.1f} Hz")
        while self._active:
            try:
                self.tick()
            except Exception as e:
                logger.error(f"Error analysing frame: {e}", exc_info=True)

            next_tick += interval
            delay = next_tick - loop.time()
            if delay < 0:
                # Fell behind; skip missed ticks instead of bursting
                next_tick = loop.time()
                delay = 0
            await asyncio.sleep(delay)
        logger.info("Frame loop exited")

    def status(self) -> SessionStatus:
        return SessionStatus(
            active=self._active,
            sensitivity=self.sensitivity,
            mood=self.current_mood,
            subscribers=len(self.publisher),
            frames_published=self.frames_published,
        )
