"""blocstate: event-driven state machines with observable transitions

This package provides a small single-writer state machine: events go in, a
mapping function turns each event and the current state into zero or more next
states, and every change is recorded as a Transition.

Responsibilities:
    - Serialized, first-in first-out event processing per machine
    - Duplicate-state suppression
    - Transition records and their key/value rendering
    - Local hooks and hub-wide observation of events, transitions and errors
    - State listeners and async state streams

Interactions:
    - Client code through the public API
    - threading for the threaded StateMachine
    - asyncio for AsyncStateMachine
    - Logging system for diagnostics

Cross-cutting Concerns:
    Thread Safety:
        - StateMachine.add() may be called from any thread
        - AsyncStateMachine.add() must be called from the loop's thread
        - Hub observer replacement is atomic

    Error Handling:
        - Structured error hierarchy rooted at StateMachineError
        - Mapper failures are routed to hooks, never to the caller of add()
        - Hook failures are isolated or propagated per ObserverErrorPolicy

    Logging:
        - Module-level loggers under the "blocstate" namespace
        - LoggingObserver for application-level transition logs
"""

from blocstate.core import (
    BaseStateMachine,
    Event,
    EventQueueError,
    LoggingObserver,
    MachineClosedError,
    MachineConfig,
    MachineHooks,
    Observer,
    ObserverError,
    ObserverErrorPolicy,
    ObserverHub,
    QueueFullError,
    StateMachine,
    StateMachineError,
    Transition,
    ValidationError,
    get_default_hub,
    set_observer,
)
from blocstate.runtime.async_support import AsyncStateMachine

__version__ = "0.1.0"

__all__ = [
    "AsyncStateMachine",
    "BaseStateMachine",
    "Event",
    "EventQueueError",
    "LoggingObserver",
    "MachineClosedError",
    "MachineConfig",
    "MachineHooks",
    "Observer",
    "ObserverError",
    "ObserverErrorPolicy",
    "ObserverHub",
    "QueueFullError",
    "StateMachine",
    "StateMachineError",
    "Transition",
    "ValidationError",
    "get_default_hub",
    "set_observer",
]
