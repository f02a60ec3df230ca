# blocstate/interfaces/protocols.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import Any, Protocol, runtime_checkable

from blocstate.interfaces.types import EventValue, State


@runtime_checkable
class AbstractObserver(Protocol):
    """
    Observer protocol for type checking.

    Methods:
        on_event(machine, event): Called for every event accepted by add().
        on_transition(machine, transition): Called for every emitted transition.
        on_error(machine, error): Called for every mapping failure.

    Runtime Invariants:
    - Observers see every machine bound to their hub.
    - Notifications for one machine arrive in that machine's order.

    Error Handling:
    - Failures are handled according to the hub's ObserverErrorPolicy.
      Hooks may be coroutine functions when the hub is driven by an
      AsyncStateMachine.
    """

    def on_event(self, machine: Any, event: EventValue) -> Any: ...

    def on_transition(self, machine: Any, transition: Any) -> Any: ...

    def on_error(self, machine: Any, error: Exception) -> Any: ...


@runtime_checkable
class AbstractStateMachine(Protocol):
    """
    Protocol defining the public machine interface.

    Runtime Invariants:
    - Exactly one event is processed at a time
    - Events are processed in submission order
    - current_state equals the next_state of the latest transition
    """

    @property
    def current_state(self) -> State: ...

    @property
    def is_closed(self) -> bool: ...

    def add(self, event: EventValue) -> None: ...
