"""
Correlation-keyed completion registry for rollover logging.

Each waiting submission owns a single-use Future indexed by its correlation id.
A completion event resolves only the Future registered under its own id;
events for unknown or already-abandoned ids are logged and dropped.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Dict

from advancepay_gateway.domain.exceptions import CompletionTimeoutError
from advancepay_gateway.events.events import RolloverLoggingCompletedEvent

logger = logging.getLogger("advancepay.events.completion")


class CompletionRegistry:
    """
    Registry of pending rollover completions.

    Usage:
        future = registry.register(correlation_id)   # before publishing
        bus.publish(requested_event)
        event = registry.wait(correlation_id, future, timeout)
    """

    def __init__(self) -> None:
        self._pending: Dict[str, Future] = {}
        self._lock = threading.Lock()

    def register(self, correlation_id: str) -> Future:
        """Create the completion handle for a correlation id; ids are single use"""
        future: Future = Future()
        with self._lock:
            if correlation_id in self._pending:
                raise ValueError(f"Correlation id already pending: {correlation_id}")
            self._pending[correlation_id] = future
        return future

    def complete(self, event: RolloverLoggingCompletedEvent) -> bool:
        """
        Resolve the waiter registered under event.correlation_id.

        Returns False when nobody is waiting for that id (unknown, timed out,
        or already completed); the event is dropped.
        """
        with self._lock:
            future = self._pending.pop(event.correlation_id, None)

        if future is None:
            logger.warning(
                "Dropping completion for unknown correlation id",
                extra={"correlation_id": event.correlation_id, "is_successful": event.is_successful},
            )
            return False

        future.set_result(event)
        return True

    def wait(self, correlation_id: str, future: Future, timeout: float) -> RolloverLoggingCompletedEvent:
        """
        Block until the completion for correlation_id arrives.

        Raises:
            CompletionTimeoutError: nothing arrived within timeout seconds;
                the handle is discarded so a late event is dropped
        """
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError as e:
            raise CompletionTimeoutError(correlation_id, timeout) from e
        finally:
            self.discard(correlation_id)

    def discard(self, correlation_id: str) -> None:
        with self._lock:
            future = self._pending.pop(correlation_id, None)
        if future is not None:
            future.cancel()

    def pending_count(self) -> int:
        with self._lock:
            return len(self._pending)

    # Bus subscription entry point
    def on_logging_completed(self, event: RolloverLoggingCompletedEvent) -> None:
        self.complete(event)
