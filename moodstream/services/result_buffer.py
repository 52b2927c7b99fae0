"""Bounded per-consumer buffering of published results."""
import asyncio
from typing import List, Optional
from moodstream.audio.models import AnalysisResult
from moodstream.core.config import settings
from moodstream.core.logging import logger


class ResultBuffer:
    """Bridges synchronous publish callbacks to an async consumer."""

    def __init__(self, consumer_id: str, max_results: Optional[int] = None):
        """
        Initialize buffer for a consumer.

        Args:
            consumer_id: Identifier used in log messages
            max_results: Maximum number of undelivered results kept
                         (defaults to config value); oldest are dropped first
        """
        if max_results is None:
            max_results = settings.result_queue_size
        self.consumer_id = consumer_id
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=max_results)
        self.dropped = 0

    def __call__(self, result: AnalysisResult) -> None:
        """Publisher callback; must run on the event loop thread."""
        self.add_result(result)

    def add_result(self, result: AnalysisResult) -> None:
        """Add a result, dropping the oldest one when full."""
        try:
            self.queue.put_nowait(result)
        except asyncio.QueueFull:
            self.dropped += 1
            if self.dropped == 1 or self.dropped % 100 == 0:
                logger.warning(f"Buffer full for consumer {self.consumer_id}, dropped {self.dropped} results")
            try:
                self.queue.get_nowait()
                self.queue.put_nowait(result)
            except (asyncio.QueueEmpty, asyncio.QueueFull):
                pass

    async def get_result(self, timeout: Optional[float] = None) -> Optional[AnalysisResult]:
        """Get the next result, or None on timeout."""
        try:
            return await asyncio.wait_for(self.queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None

    def drain(self) -> List[AnalysisResult]:
        """Remove and return every buffered result in publish order."""
        results = []
        while True:
            try:
                results.append(self.queue.get_nowait())
            except asyncio.QueueEmpty:
                return results
