# blocstate/runtime/async_support.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import asyncio
import inspect
import logging
from collections import deque
from typing import Any, AsyncIterator, Awaitable, Callable, Deque, List, Optional, Tuple

from blocstate.core.config import MachineConfig
from blocstate.core.errors import MachineClosedError, ObserverError, QueueFullError
from blocstate.core.hooks import MachineHooks, call_hook, call_hook_async, discard_awaitable
from blocstate.core.observer import ObserverHub
from blocstate.core.state_machine import BaseStateMachine
from blocstate.interfaces.types import AsyncMapper, State

logger = logging.getLogger(__name__)

_STREAM_END = object()


class AsyncEventQueue:
    """
    FIFO queue that serializes the events of one machine on an asyncio loop.

    push() is synchronous and never blocks: it appends the event and, if no
    drain task is running, creates one on the running loop. The drain task
    awaits the processor for each event in turn and finishes once the queue
    is empty.
    """

    def __init__(
        self,
        processor: Callable[[Any], Awaitable[None]],
        max_size: int = 0,
        name: str = "AsyncEventQueue",
        on_close: Optional[Callable[[], None]] = None,
    ) -> None:
        """
        :param processor: Coroutine function awaited with each event.
        :param max_size: Maximum number of pending events; 0 means unbounded.
        :param name: Used for the task name and log records.
        :param on_close: Called once, after close() and once draining has stopped.
        """
        self._processor = processor
        self._max_size = max_size
        self._name = name
        self._on_close = on_close
        self._events: Deque[Any] = deque()
        self._task: Optional[asyncio.Task] = None
        self._idle = asyncio.Event()
        self._idle.set()
        self._closed = False
        self._close_notified = False
        self._failures: List[Exception] = []

    def __len__(self) -> int:
        return len(self._events)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def draining(self) -> bool:
        return self._task is not None

    def is_empty(self) -> bool:
        return not self._events

    def push(self, event: Any) -> None:
        """
        Add an event to the queue. Must be called from the loop's thread
        while the loop is running.

        :raises MachineClosedError: If the queue has been closed.
        :raises QueueFullError: If the queue is bounded and full.
        :raises RuntimeError: If no event loop is running.
        """
        if self._closed:
            raise MachineClosedError(f"{self._name} is closed; cannot add {event!r}")
        if self._max_size and len(self._events) >= self._max_size:
            raise QueueFullError(f"{self._name} is full", max_size=self._max_size, current_size=len(self._events))
        loop = asyncio.get_running_loop()
        self._events.append(event)
        if self._task is None:
            self._idle.clear()
            self._task = loop.create_task(self._drain(), name=f"{self._name}-events")

    async def _drain(self) -> None:
        try:
            while self._events:
                event = self._events.popleft()
                try:
                    await self._processor(event)
                except Exception as e:
                    logger.error("%s: processing %r failed: %s", self._name, event, e)
                    self._failures.append(e)
        finally:
            self._task = None
            self._idle.set()
            self._notify_closed()

    def in_worker(self) -> bool:
        """True when called from inside the drain task."""
        return self._task is not None and asyncio.current_task() is self._task

    async def join(self) -> None:
        """
        Wait until the queue is empty and no event is being processed.
        Returns immediately when awaited from inside the drain task.
        """
        if self.in_worker():
            return
        await self._idle.wait()

    def close(self) -> None:
        """
        Stop accepting events. Queued events still drain; the close callback
        runs when draining stops.
        """
        if self._closed:
            return
        self._closed = True
        logger.debug("%s: closed with %d pending event(s)", self._name, len(self._events))
        self._notify_closed()

    def raise_pending(self) -> None:
        """Re-raise the oldest failure that escaped the processor, if any."""
        if self._failures:
            raise self._failures.pop(0)

    def _notify_closed(self) -> None:
        if not self._closed or self._close_notified or self._task is not None:
            return
        self._close_notified = True
        if self._on_close is not None:
            self._on_close()


class AsyncStateMachine(BaseStateMachine):
    """
    Event-driven state machine processed on an asyncio event loop.

    The mapper may be an async generator function, a coroutine function
    returning an iterable, or a plain (generator) function. Coroutine hooks,
    listeners and observer methods are awaited. add() must be called from the
    loop's thread while the loop runs. Mapper failures follow StateMachine:
    states yielded before the exception stay applied.

        async def counter(event, state):
            if event == "increment":
                yield state + 1

        machine = AsyncStateMachine(0, counter)
        machine.add("increment")
        await machine.flush()
    """

    def __init__(
        self,
        initial_state: State,
        mapper: AsyncMapper,
        hooks: Optional[MachineHooks] = None,
        hub: Optional[ObserverHub] = None,
        config: Optional[MachineConfig] = None,
    ) -> None:
        super().__init__(initial_state, mapper, hooks, hub, config)
        self._queue = AsyncEventQueue(
            self._process,
            max_size=self._config.max_queue_size,
            name=self.name,
            on_close=self._release,
        )
        self._streams: List[asyncio.Queue] = []

    @property
    def is_closed(self) -> bool:
        return self._queue.closed

    def add(self, event: Any) -> None:
        """
        Submit an event for processing without waiting for it.

        Event hooks run synchronously inside add(). If one of them returns an
        awaitable, it is awaited when the event's processing begins, before the
        mapper runs.

        :raises MachineClosedError: If the machine has been closed.
        :raises QueueFullError: If a bounded queue is full.
        :raises ObserverError: If an event hook fails under the PROPAGATE policy.
        """
        self._check_open(event)
        pending: List[Tuple[Awaitable[Any], Any, str]] = []
        result = call_hook(
            self._hub.observer.on_event, self, event, policy=self._hub.policy, label="observer.on_event"
        )
        if inspect.isawaitable(result):
            pending.append((result, self._hub.policy, "observer.on_event"))
        result = call_hook(self._hooks.on_event, event, policy=self._config.hook_errors, label="hooks.on_event")
        if inspect.isawaitable(result):
            pending.append((result, self._config.hook_errors, "hooks.on_event"))
        try:
            self._queue.push((event, pending))
        except Exception:
            for awaitable, _, _ in pending:
                discard_awaitable(awaitable)
            raise

    async def flush(self) -> None:
        """
        Wait until every submitted event has been processed, then re-raise the
        oldest hook failure that escaped processing, if any.
        """
        await self._queue.join()
        self._queue.raise_pending()

    async def close(self) -> None:
        """
        Stop accepting events and wait for queued events to drain. Awaiting
        from inside event processing does not wait.
        """
        self._queue.close()
        await self.flush()

    async def __aenter__(self) -> "AsyncStateMachine":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def stream(self, emit_current: bool = False) -> AsyncIterator[State]:
        """
        Iterate over the machine's new states as they are applied. States
        applied after this call are buffered until iterated, and the iteration
        ends when the machine closes.

        :param emit_current: Yield the current state (as of this call) first.
        """
        if self.is_closed:
            return self._closed_stream(self._state if emit_current else _STREAM_END)
        queue: asyncio.Queue = asyncio.Queue()
        self._streams.append(queue)
        return self._iterate_stream(queue, self._state if emit_current else _STREAM_END)

    async def _closed_stream(self, current: Any) -> AsyncIterator[State]:
        if current is not _STREAM_END:
            yield current

    async def _iterate_stream(self, queue: asyncio.Queue, current: Any) -> AsyncIterator[State]:
        try:
            if current is not _STREAM_END:
                yield current
            while True:
                state = await queue.get()
                if state is _STREAM_END:
                    return
                yield state
        finally:
            if queue in self._streams:
                self._streams.remove(queue)

    async def _process(self, item: Tuple[Any, List[Tuple[Awaitable[Any], Any, str]]]) -> None:
        event, pending = item
        for awaitable, policy, label in pending:
            await call_hook_async(lambda: awaitable, policy=policy, label=label)
        mapper = self._mapper
        try:
            candidates = mapper(event, self._state)
            if inspect.isawaitable(candidates):
                candidates = await candidates
            if candidates is None:
                return
            if hasattr(candidates, "__aiter__"):
                async for candidate in candidates:
                    await self._apply(event, candidate)
            else:
                for candidate in candidates:
                    await self._apply(event, candidate)
        except ObserverError:
            raise
        except Exception as error:
            await self._report_error(event, error)

    async def _apply(self, event: Any, candidate: State) -> None:
        transition = self._advance(event, candidate)
        if transition is None:
            return
        policy = self._config.hook_errors
        await call_hook_async(self._hooks.on_transition, transition, policy=policy, label="hooks.on_transition")
        await self._hub.notify_transition_async(self, transition)
        for listener in self._snapshot_listeners():
            await call_hook_async(listener, transition.next_state, policy=policy, label="state listener")
        for queue in list(self._streams):
            queue.put_nowait(transition.next_state)

    async def _report_error(self, event: Any, error: Exception) -> None:
        logger.debug("%s: mapper failed for %r: %r", self.name, event, error)
        await call_hook_async(self._hooks.on_error, error, policy=self._config.hook_errors, label="hooks.on_error")
        await self._hub.notify_error_async(self, error)

    def _release(self) -> None:
        for queue in list(self._streams):
            queue.put_nowait(_STREAM_END)
        super()._release()
