"""Service owning the server-side microphone analysis session."""
import asyncio
from typing import Optional, Tuple
from moodstream.audio.capture import MicrophoneSource, SpectrumSource
from moodstream.audio.models import SessionStatus
from moodstream.services.session import AnalysisSession
from moodstream.core.logging import logger


class CaptureService:
    """Runs one AnalysisSession and its frame loop task."""

    def __init__(self, source: Optional[SpectrumSource] = None, frame_rate_hz: Optional[float] = None):
        """
        Initialize the service.

        Args:
            source: Frame source (microphone from config if None)
            frame_rate_hz: Frame loop rate (defaults to config value)
        """
        self.session = AnalysisSession(source or MicrophoneSource())
        self.frame_rate_hz = frame_rate_hz
        self._task: Optional[asyncio.Task] = None
        self._lock = asyncio.Lock()

    @property
    def is_running(self) -> bool:
        return self.session.is_active

    async def start(self) -> Tuple[bool, str]:
        """
        Start capture and the frame loop.

        Returns:
            (success, message) from the frame source
        """
        async with self._lock:
            if self.session.is_active:
                return True, "Session already active"

            # opening the device blocks
            success, message = await asyncio.to_thread(self.session.start)
            if not success:
                return False, message

            self._task = asyncio.create_task(self.session.run(self.frame_rate_hz))
            return True, message

    async def stop(self) -> None:
        """Stop the loop and release capture. Idempotent."""
        async with self._lock:
            await asyncio.to_thread(self.session.stop)
            task, self._task = self._task, None
            if task is not None:
                try:
                    await task
                except Exception as e:
                    logger.error(f"Frame loop ended with error: {e}")

    def set_sensitivity(self, value: float) -> float:
        return self.session.set_sensitivity(value)

    def status(self) -> SessionStatus:
        return self.session.status()
