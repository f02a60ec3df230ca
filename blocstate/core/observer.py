# blocstate/core/observer.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
import threading
from typing import Any, Optional

from blocstate.core.errors import ValidationError
from blocstate.core.hooks import ObserverErrorPolicy, call_hook_async, call_sync_hook
from blocstate.core.transitions import Transition
from blocstate.interfaces.protocols import AbstractObserver

logger = logging.getLogger(__name__)


class Observer:
    """
    Cross-cutting observer of every machine bound to a hub. All methods are
    no-ops; subclasses override the ones they care about.
    """

    def on_event(self, machine: Any, event: Any) -> None:
        pass

    def on_transition(self, machine: Any, transition: Transition) -> None:
        pass

    def on_error(self, machine: Any, error: Exception) -> None:
        pass


class LoggingObserver(Observer):
    """
    Observer that writes events, transitions and errors to a logger.
    Transitions are logged as key/value records.
    """

    def __init__(self, logger_name: str = "blocstate.observer", level: int = logging.INFO) -> None:
        """
        :param logger_name: Name of the logger to write to.
        :param level: Level used for event and transition records.
        """
        self.logger = logging.getLogger(logger_name)
        self.level = level

    def on_event(self, machine: Any, event: Any) -> None:
        self.logger.log(self.level, "%s event: %s", _machine_name(machine), event)

    def on_transition(self, machine: Any, transition: Transition) -> None:
        self.logger.log(self.level, "%s transition: %s", _machine_name(machine), transition.to_dict())

    def on_error(self, machine: Any, error: Exception) -> None:
        self.logger.error("%s error: %r", _machine_name(machine), error)


def _machine_name(machine: Any) -> str:
    return getattr(machine, "name", None) or type(machine).__name__


class ObserverHub:
    """
    Fans out every event, transition and error of the machines bound to it to
    a single active observer. Machines bind a hub once, at construction.

    Replacing the observer is configuration: do it before machines start
    emitting. The swap itself is atomic, so a notification goes either to the
    old observer or to the new one, never to a mix.
    """

    def __init__(
        self,
        observer: Optional[AbstractObserver] = None,
        policy: ObserverErrorPolicy = ObserverErrorPolicy.ISOLATE,
    ) -> None:
        """
        :param observer: Initial observer; the no-op Observer if None.
        :param policy: Failure policy applied to observer hooks.
        """
        if not isinstance(policy, ObserverErrorPolicy):
            raise ValidationError(f"policy must be an ObserverErrorPolicy, got {policy!r}")
        self._lock = threading.Lock()
        self._observer = _validate_observer(observer)
        self._policy = policy

    @property
    def observer(self) -> AbstractObserver:
        """The currently active observer."""
        with self._lock:
            return self._observer

    @property
    def policy(self) -> ObserverErrorPolicy:
        return self._policy

    def set_observer(self, observer: Optional[AbstractObserver]) -> None:
        """
        Replace the active observer. Past notifications are not replayed.

        :param observer: The new observer, or None to restore the no-op Observer.
        :raises ValidationError: If observer does not provide the observer hooks.
        """
        observer = _validate_observer(observer)
        with self._lock:
            self._observer = observer
        logger.debug("Hub observer set to %s", type(observer).__name__)

    def notify_event(self, machine: Any, event: Any) -> None:
        call_sync_hook(self.observer.on_event, machine, event, policy=self._policy, label="observer.on_event")

    def notify_transition(self, machine: Any, transition: Transition) -> None:
        call_sync_hook(
            self.observer.on_transition, machine, transition, policy=self._policy, label="observer.on_transition"
        )

    def notify_error(self, machine: Any, error: Exception) -> None:
        call_sync_hook(self.observer.on_error, machine, error, policy=self._policy, label="observer.on_error")

    async def notify_transition_async(self, machine: Any, transition: Transition) -> None:
        await call_hook_async(
            self.observer.on_transition, machine, transition, policy=self._policy, label="observer.on_transition"
        )

    async def notify_error_async(self, machine: Any, error: Exception) -> None:
        await call_hook_async(self.observer.on_error, machine, error, policy=self._policy, label="observer.on_error")


def _validate_observer(observer: Optional[AbstractObserver]) -> AbstractObserver:
    if observer is None:
        return Observer()
    if not isinstance(observer, AbstractObserver):
        raise ValidationError(
            f"{type(observer).__name__} is not an observer: it must define on_event, on_transition and on_error"
        )
    return observer


_default_hub = ObserverHub()


def get_default_hub() -> ObserverHub:
    """Return the process-wide hub used by machines created without hub=."""
    return _default_hub


def set_observer(observer: Optional[AbstractObserver]) -> None:
    """Replace the observer of the process-wide default hub."""
    _default_hub.set_observer(observer)
