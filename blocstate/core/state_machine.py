# blocstate/core/state_machine.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import inspect
import logging
import threading
from typing import Any, Callable, List, Optional

from blocstate.core.config import MachineConfig
from blocstate.core.errors import MachineClosedError, ObserverError, ValidationError
from blocstate.core.hooks import MachineHooks, call_sync_hook
from blocstate.core.observer import ObserverHub, get_default_hub
from blocstate.core.transitions import Transition
from blocstate.interfaces.types import Mapper, State, StateListener, Unsubscribe
from blocstate.runtime.event_queue import EventQueue

logger = logging.getLogger(__name__)


class BaseStateMachine:
    """
    State handling shared by the threaded and asyncio machines: the current
    state, duplicate suppression, hooks, the bound hub and state listeners.
    Subclasses own the event queue and drive the mapper.
    """

    def __init__(
        self,
        initial_state: State,
        mapper: Callable[..., Any],
        hooks: Optional[MachineHooks] = None,
        hub: Optional[ObserverHub] = None,
        config: Optional[MachineConfig] = None,
    ) -> None:
        """
        :param initial_state: The state this machine starts in.
        :param mapper: Called as mapper(event, current_state); returns the
                       candidate next states for the event.
        :param hooks: Optional local callbacks.
        :param hub: Hub receiving this machine's notifications. Defaults to the
                    process-wide hub, resolved once here.
        :param config: Machine settings.
        """
        if not callable(mapper):
            raise ValidationError(f"mapper must be callable, got {mapper!r}")
        if hooks is not None and not isinstance(hooks, MachineHooks):
            raise ValidationError(f"hooks must be a MachineHooks instance, got {hooks!r}")
        if hub is not None and not isinstance(hub, ObserverHub):
            raise ValidationError(f"hub must be an ObserverHub, got {hub!r}")
        self._config = config or MachineConfig()
        self._state = initial_state
        self._mapper: Optional[Callable[..., Any]] = mapper
        self._hooks = hooks or MachineHooks()
        self._hub = hub or get_default_hub()
        self._listeners: List[StateListener] = []
        self._listeners_lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._config.name or type(self).__name__

    @property
    def current_state(self) -> State:
        """The state as of the last fully-applied transition."""
        return self._state

    @property
    def hub(self) -> ObserverHub:
        return self._hub

    @property
    def config(self) -> MachineConfig:
        return self._config

    @property
    def is_closed(self) -> bool:
        raise NotImplementedError()

    def subscribe(self, listener: StateListener) -> Unsubscribe:
        """
        Register a callable that receives every new state, after the
        transition's hooks and hub notification have run.

        :param listener: Called with the new state.
        :return: A function that removes the listener; safe to call twice.
        """
        if not callable(listener):
            raise ValidationError(f"listener must be callable, got {listener!r}")
        with self._listeners_lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._listeners_lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _check_open(self, event: Any) -> None:
        if self.is_closed:
            raise MachineClosedError(f"{self.name} is closed; cannot add {event!r}")

    def _advance(self, event: Any, candidate: State) -> Optional[Transition]:
        """
        Apply one candidate state. Returns the Transition, or None if the
        candidate equals the current state.
        """
        if candidate == self._state:
            logger.debug("%s: %r left state unchanged", self.name, event)
            return None
        transition = Transition(current_state=self._state, event=event, next_state=candidate)
        self._state = candidate
        logger.debug("%s: %s", self.name, transition)
        return transition

    def _snapshot_listeners(self) -> List[StateListener]:
        with self._listeners_lock:
            return list(self._listeners)

    def _release(self) -> None:
        self._mapper = None
        with self._listeners_lock:
            self._listeners.clear()
        logger.debug("%s: closed", self.name)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, state={self._state!r}, closed={self.is_closed})"


class StateMachine(BaseStateMachine):
    """
    Event-driven state machine whose events are processed on a worker thread.

    add() returns immediately. Events of one machine are processed strictly in
    submission order, one at a time: all candidate states produced for an event
    are applied before the next event's mapper call starts.

    A mapper exception is reported to on_error hooks and the hub, never to the
    caller of add(). Candidates yielded before the exception have already been
    applied and broadcast and are not rolled back, so current_state is always
    the next_state of the last emitted Transition.

    The mapper is a synchronous callable, typically a generator function:

        def counter(event, state):
            if event == "increment":
                yield state + 1

        machine = StateMachine(0, counter)
        machine.add("increment")
        machine.flush()
        assert machine.current_state == 1
    """

    def __init__(
        self,
        initial_state: State,
        mapper: Mapper,
        hooks: Optional[MachineHooks] = None,
        hub: Optional[ObserverHub] = None,
        config: Optional[MachineConfig] = None,
    ) -> None:
        if inspect.iscoroutinefunction(mapper) or inspect.isasyncgenfunction(mapper):
            raise ValidationError("Asynchronous mappers require AsyncStateMachine")
        super().__init__(initial_state, mapper, hooks, hub, config)
        self._queue = EventQueue(
            self._process,
            max_size=self._config.max_queue_size,
            name=self.name,
            on_close=self._release,
        )

    @property
    def is_closed(self) -> bool:
        return self._queue.closed

    def add(self, event: Any) -> None:
        """
        Submit an event for processing. Never blocks on processing; safe to
        call from any thread, including from inside the mapper.

        :param event: The event to process.
        :raises MachineClosedError: If the machine has been closed.
        :raises QueueFullError: If a bounded queue is full.
        :raises ObserverError: If an event hook fails under the PROPAGATE policy.
        """
        self._check_open(event)
        self._hub.notify_event(self, event)
        call_sync_hook(self._hooks.on_event, event, policy=self._config.hook_errors, label="hooks.on_event")
        self._queue.push(event)

    def flush(self, timeout: Optional[float] = None) -> bool:
        """
        Wait until every submitted event has been processed, then re-raise
        the oldest hook failure that escaped processing, if any.

        :param timeout: Maximum seconds to wait, or None to wait indefinitely.
        :return: True if the queue went idle, False on timeout.
        """
        idle = self._queue.join(timeout)
        self._queue.raise_pending()
        return idle

    def close(self, timeout: Optional[float] = None) -> bool:
        """
        Stop accepting events and let already queued events drain. When called
        from inside event processing the machine closes once the current drain
        finishes and this call does not wait.

        :param timeout: Maximum seconds to wait for draining.
        :return: True if draining finished (or was not waited for).
        """
        self._queue.close()
        if self._queue.in_worker():
            return True
        return self.flush(timeout)

    def __enter__(self) -> "StateMachine":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _process(self, event: Any) -> None:
        mapper = self._mapper
        try:
            candidates = mapper(event, self._state)
            for candidate in candidates or ():
                self._apply(event, candidate)
        except ObserverError:
            raise
        except Exception as error:
            self._report_error(event, error)

    def _apply(self, event: Any, candidate: State) -> None:
        transition = self._advance(event, candidate)
        if transition is None:
            return
        policy = self._config.hook_errors
        call_sync_hook(self._hooks.on_transition, transition, policy=policy, label="hooks.on_transition")
        self._hub.notify_transition(self, transition)
        for listener in self._snapshot_listeners():
            call_sync_hook(listener, transition.next_state, policy=policy, label="state listener")

    def _report_error(self, event: Any, error: Exception) -> None:
        logger.debug("%s: mapper failed for %r: %r", self.name, event, error)
        call_sync_hook(self._hooks.on_error, error, policy=self._config.hook_errors, label="hooks.on_error")
        self._hub.notify_error(self, error)
