# tests/unit/test_errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details


def test_error_hierarchy(error_classes):
    StateMachineError, ValidationError, MachineClosedError, EventQueueError, QueueFullError, ObserverError = (
        error_classes
    )
    assert issubclass(ValidationError, StateMachineError)
    assert issubclass(MachineClosedError, StateMachineError)
    assert issubclass(EventQueueError, StateMachineError)
    assert issubclass(QueueFullError, EventQueueError)
    assert issubclass(ObserverError, StateMachineError)


def test_exceptions_instantiation(error_classes):
    StateMachineError, ValidationError, MachineClosedError, EventQueueError, QueueFullError, ObserverError = (
        error_classes
    )
    e = ValidationError("Invalid config")
    assert str(e) == "Invalid config"
    e = MachineClosedError("Closed")
    assert str(e) == "Closed"


def test_event_queue_error_details(error_classes):
    EventQueueError = error_classes[3]
    error = EventQueueError("Operation failed", {"operation": "push"})
    assert error.details == {"operation": "push"}
    assert "Operation failed" in str(error)
    assert EventQueueError("no details").details == {}


def test_queue_full_error(error_classes):
    QueueFullError = error_classes[4]
    error = QueueFullError("Queue is full", max_size=5, current_size=5)
    assert error.max_size == 5
    assert error.current_size == 5
    assert "Queue is full" in str(error)
    assert error.details == {"max_size": 5, "current_size": 5}


def test_observer_error_carries_hook(error_classes):
    ObserverError = error_classes[5]
    error = ObserverError("hooks.on_transition failed: boom", hook="hooks.on_transition")
    assert error.hook == "hooks.on_transition"
