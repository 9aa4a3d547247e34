"""
In-process publish/subscribe bus.

Behavior:
    - Handlers are registered per event class
    - publish() returns immediately; each handler runs on the bus worker pool
    - A failing handler is logged and does not affect other handlers
    - Events published after shutdown() are dropped with a warning
"""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, DefaultDict, List, Type

logger = logging.getLogger("advancepay.events.bus")

EventHandler = Callable[[Any], None]


class EventBus:
    """
    Thread-pool backed event bus.

    State:
        _handlers: registered handlers per event class
        _executor: worker pool delivering events to handlers
    """

    def __init__(self, max_workers: int = 4) -> None:
        self._handlers: DefaultDict[Type, List[EventHandler]] = defaultdict(list)
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="advancepay-bus")
        self._closed = False

    def subscribe(self, event_type: Type, handler: EventHandler) -> None:
        """Register a handler for every future event of event_type"""
        with self._lock:
            self._handlers[event_type].append(handler)

    def publish(self, event: Any) -> List[Future]:
        """
        Schedule delivery of event to each handler subscribed to its class.

        Returns the delivery futures so callers (mostly tests) can wait on them.
        """
        with self._lock:
            if self._closed:
                logger.warning("EventBus closed, dropping %s", type(event).__name__)
                return []

            handlers = list(self._handlers[type(event)])
            if not handlers:
                logger.debug("No handlers for %s", type(event).__name__)

            return [self._executor.submit(self._dispatch, handler, event) for handler in handlers]

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting events and release the worker pool"""
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait)

    def handler_count(self, event_type: Type) -> int:
        with self._lock:
            return len(self._handlers[event_type])

    @staticmethod
    def _dispatch(handler: EventHandler, event: Any) -> None:
        try:
            handler(event)
        except Exception:
            logger.exception(
                "EventBus handler %s failed for %s correlation_id=%s",
                getattr(handler, "__qualname__", repr(handler)),
                type(event).__name__,
                getattr(event, "correlation_id", None),
            )
