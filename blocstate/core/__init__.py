"""
Core package providing the state machine, transitions and observation.

Architecture:
- Holds the current state and applies candidate states
- Records accepted changes as Transition objects
- Routes events, transitions and errors to local hooks and a hub

Design Patterns:
- Observer Pattern for hub-wide notifications
- Strategy Pattern for hook failure handling
- Composition of optional callbacks instead of subclass overrides

Cross-cutting:
- Error handling with a single exception hierarchy
- Logging through module-level loggers
"""

# Import order matters to avoid circular dependencies
from .errors import (
    EventQueueError,
    MachineClosedError,
    ObserverError,
    QueueFullError,
    StateMachineError,
    ValidationError,
)
from .events import Event
from .transitions import Transition
from .hooks import MachineHooks, ObserverErrorPolicy
from .config import MachineConfig
from .observer import LoggingObserver, Observer, ObserverHub, get_default_hub, set_observer
from .state_machine import BaseStateMachine, StateMachine

__all__ = [
    # Errors
    "StateMachineError",
    "ValidationError",
    "MachineClosedError",
    "EventQueueError",
    "QueueFullError",
    "ObserverError",
    # Values
    "Event",
    "Transition",
    # Hooks and configuration
    "MachineHooks",
    "ObserverErrorPolicy",
    "MachineConfig",
    # Observation
    "Observer",
    "LoggingObserver",
    "ObserverHub",
    "get_default_hub",
    "set_observer",
    # Machines
    "BaseStateMachine",
    "StateMachine",
]
