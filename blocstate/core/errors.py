# blocstate/core/errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from typing import Any, Dict, Optional


class StateMachineError(Exception):
    """
    Base exception class for errors raised by the state machine library.
    """


class ValidationError(StateMachineError):
    """
    Raised when a machine, hub or configuration is given arguments it cannot use.
    """


class MachineClosedError(StateMachineError):
    """
    Raised when an event is added to a machine (or queue) that has been closed.
    This is a caller-side lifecycle bug and is never swallowed.
    """


class EventQueueError(StateMachineError):
    """
    Base class for event queue failures. Carries a details dictionary for
    diagnostics.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.details = details or {}


class QueueFullError(EventQueueError):
    """
    Raised when a bounded event queue cannot accept another event.
    """

    def __init__(self, message: str, max_size: int, current_size: int) -> None:
        super().__init__(message, {"max_size": max_size, "current_size": current_size})
        self.max_size = max_size
        self.current_size = current_size


class ObserverError(StateMachineError):
    """
    Raised when a hook, listener or observer fails and the active policy says
    the failure must propagate. The original exception is chained as __cause__.
    """

    def __init__(self, message: str, hook: str) -> None:
        super().__init__(message)
        self.hook = hook
