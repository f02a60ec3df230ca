# blocstate/runtime/event_queue.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Any, Callable, Deque, List, Optional

from blocstate.core.errors import MachineClosedError, QueueFullError, StateMachineError

logger = logging.getLogger(__name__)


class _EventQueueLock:
    """
    Internal context manager ensuring thread-safe access to the event queue.
    """

    def __init__(self, lock: threading.Lock) -> None:
        self._lock = lock

    def __enter__(self) -> None:
        self._lock.acquire()

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._lock.release()


class EventQueue:
    """
    FIFO queue that serializes the events of one machine.

    push() never blocks: it appends the event and, if nobody is draining,
    starts a worker thread that drains the queue. The worker hands events to
    the processor one at a time and exits once the queue is empty. Events
    pushed while draining (including from inside the processor) are picked up
    by the same worker, after the current event completes.
    """

    def __init__(
        self,
        processor: Callable[[Any], None],
        max_size: int = 0,
        name: str = "EventQueue",
        on_close: Optional[Callable[[], None]] = None,
    ) -> None:
        """
        :param processor: Called with each event, on the worker thread.
        :param max_size: Maximum number of pending events; 0 means unbounded.
        :param name: Used for the worker thread name and log records.
        :param on_close: Called once, after close() and once draining has stopped.
        """
        self._processor = processor
        self._max_size = max_size
        self._name = name
        self._on_close = on_close
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._events: Deque[Any] = deque()
        self._draining = False
        self._closed = False
        self._close_notified = False
        self._worker_ident: Optional[int] = None
        self._failures: List[Exception] = []

    def __len__(self) -> int:
        with _EventQueueLock(self._lock):
            return len(self._events)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def draining(self) -> bool:
        return self._draining

    def push(self, event: Any) -> None:
        """
        Add an event to the queue and make sure it will be drained.

        :param event: The event to enqueue.
        :raises MachineClosedError: If the queue has been closed.
        :raises QueueFullError: If the queue is bounded and full.
        """
        with _EventQueueLock(self._lock):
            if self._closed:
                raise MachineClosedError(f"{self._name} is closed; cannot add {event!r}")
            if self._max_size and len(self._events) >= self._max_size:
                raise QueueFullError(
                    f"{self._name} is full", max_size=self._max_size, current_size=len(self._events)
                )
            self._events.append(event)
            if self._draining:
                return
            self._draining = True

        worker = threading.Thread(target=self.drain, name=f"{self._name}-events", daemon=True)
        worker.start()

    def drain(self) -> None:
        """
        Process queued events until the queue is empty. Runs on the worker
        thread started by push().
        """
        self._worker_ident = threading.get_ident()
        run_close = False
        try:
            while True:
                with _EventQueueLock(self._lock):
                    if not self._events:
                        # Decided under the same lock push() checks, so no event is stranded
                        run_close = self._claim_close()
                        if not run_close:
                            self._stop_draining()
                        break
                    event = self._events.popleft()
                try:
                    self._processor(event)
                except Exception as e:
                    logger.error("%s: processing %r failed: %s", self._name, event, e)
                    with _EventQueueLock(self._lock):
                        self._failures.append(e)
            if run_close:
                self._run_on_close()
        finally:
            with _EventQueueLock(self._lock):
                if self._draining and self._worker_ident == threading.get_ident():
                    self._stop_draining()
        if not run_close:
            # close() may have been called while this worker was stopping
            self._notify_closed()

    def _stop_draining(self) -> None:
        # Caller holds self._lock
        self._worker_ident = None
        self._draining = False
        self._idle.notify_all()

    def _claim_close(self) -> bool:
        # Caller holds self._lock
        if not self._closed or self._close_notified:
            return False
        self._close_notified = True
        return True

    def _run_on_close(self) -> None:
        if self._on_close is not None:
            self._on_close()

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Block until the queue is empty and no event is being processed.

        :param timeout: Maximum seconds to wait, or None to wait indefinitely.
        :return: True if the queue went idle, False on timeout.
        :raises StateMachineError: If called from inside event processing.
        """
        if self.in_worker():
            raise StateMachineError(f"{self._name}: cannot wait for the queue from inside event processing")
        with self._idle:
            return self._idle.wait_for(lambda: not self._draining, timeout)

    def in_worker(self) -> bool:
        """True when called from the thread currently draining this queue."""
        return self._worker_ident == threading.get_ident()

    def close(self) -> None:
        """
        Stop accepting events. Events already queued still drain; the close
        callback runs when draining stops (immediately if the queue is idle).
        """
        with _EventQueueLock(self._lock):
            if self._closed:
                return
            self._closed = True
            draining = self._draining
        logger.debug("%s: closed with %d pending event(s)", self._name, len(self))
        if not draining:
            self._notify_closed()

    def raise_pending(self) -> None:
        """
        Re-raise the oldest failure that escaped the processor, if any.
        """
        with _EventQueueLock(self._lock):
            if not self._failures:
                return
            failure = self._failures.pop(0)
        raise failure

    def _notify_closed(self) -> None:
        with _EventQueueLock(self._lock):
            if self._draining or not self._claim_close():
                return
        self._run_on_close()
