"""Fan-out delivery of analysis results to subscribers."""
from typing import Callable, Dict
from moodstream.audio.models import AnalysisResult
from moodstream.core.logging import logger

ResultCallback = Callable[[AnalysisResult], None]


class Subscription:
    """Callable handle that removes exactly one registration."""

    def __init__(self, publisher: "ResultPublisher", handle: int):
        self._publisher = publisher
        self.handle = handle
        self._active = True

    @property
    def active(self) -> bool:
        """False once unsubscribed, by this handle or by the publisher."""
        return self._active

    def __call__(self) -> None:
        """Unsubscribe. Calling more than once has no further effect."""
        if not self._active:
            return
        self._publisher.unsubscribe(self.handle)


class ResultPublisher:
    """Registry of subscriber callbacks keyed by integer handles."""

    def __init__(self):
        """Initialize an empty registry."""
        # dicts keep insertion order, which is the delivery order
        self._callbacks: Dict[int, ResultCallback] = {}
        self._subscriptions: Dict[int, Subscription] = {}
        self._next_handle = 0

    def __len__(self) -> int:
        return len(self._callbacks)

    def subscribe(self, callback: ResultCallback) -> Subscription:
        """
        Register a callback for every future result.

        Args:
            callback: Called synchronously with each AnalysisResult

        Returns:
            Subscription handle; call it to unsubscribe
        """
        handle = self._next_handle
        self._next_handle += 1
        self._callbacks[handle] = callback
        subscription = Subscription(self, handle)
        self._subscriptions[handle] = subscription
        logger.debug(f"Subscriber {handle} registered ({len(self._callbacks)} total)")
        return subscription

    def unsubscribe(self, handle: int) -> bool:
        """
        Remove a registration by handle.

        Returns:
            True if the handle was registered
        """
        removed = self._callbacks.pop(handle, None) is not None
        subscription = self._subscriptions.pop(handle, None)
        if subscription is not None:
            subscription._active = False
        if removed:
            logger.debug(f"Subscriber {handle} removed ({len(self._callbacks)} remaining)")
        return removed

    def clear(self) -> None:
        """Drop every registration and deactivate its handle."""
        for subscription in self._subscriptions.values():
            subscription._active = False
        self._subscriptions.clear()
        self._callbacks.clear()

    def publish(self, result: AnalysisResult) -> int:
        """
        Deliver a result to every subscriber registered right now.

        Delivery iterates over a snapshot, so callbacks may subscribe or
        unsubscribe (themselves or others) without affecting this frame.
        A failing callback is logged and skipped.

        Args:
            result: Result for the current frame

        Returns:
            Number of callbacks that completed without raising
        """
        delivered = 0
        for handle, callback in list(self._callbacks.items()):
            try:
                callback(result)
                delivered += 1
            except Exception as e:
                logger.error(f"Subscriber {handle} failed: {e}", exc_info=True)
        return delivered
