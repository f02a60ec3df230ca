# tests/conftest.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import threading
from unittest.mock import MagicMock

import pytest

from blocstate.core.observer import ObserverHub, get_default_hub


class RecordingObserver:
    """
    An observer that appends a trace record for every notification. Comparing
    the trace to an expected sequence verifies ordering across hooks.
    """

    def __init__(self):
        self.events = []
        self.transitions = []
        self.errors = []
        self.trace = []

    def on_event(self, machine, event):
        self.events.append((machine, event))
        self.trace.append(("event", event))

    def on_transition(self, machine, transition):
        self.transitions.append((machine, transition))
        self.trace.append(("transition", transition))

    def on_error(self, machine, error):
        self.errors.append((machine, error))
        self.trace.append(("error", error))


def counter(event, state):
    """Mapper used throughout the tests: an integer counter."""
    if event == "increment":
        yield state + 1
    elif event == "decrement":
        yield state - 1
    elif event == "noop":
        yield state
    elif event == "bad":
        raise ValueError("bad event")


@pytest.fixture
def counter_mapper():
    """The integer counter mapper."""
    return counter


@pytest.fixture
def recorder():
    """A fresh RecordingObserver."""
    return RecordingObserver()


@pytest.fixture
def hub(recorder):
    """A hub isolated from the process-wide default, observed by the recorder."""
    return ObserverHub(recorder)


@pytest.fixture
def mock_hooks():
    """Local hook mocks for MachineHooks."""
    from blocstate.core.hooks import MachineHooks

    return MachineHooks(on_event=MagicMock(), on_transition=MagicMock(), on_error=MagicMock())


@pytest.fixture
def machine_factory(hub, counter_mapper):
    """Returns a factory creating counter machines bound to the test hub."""
    from blocstate.core.state_machine import StateMachine

    created = []

    def _factory(initial_state=0, mapper=None, **kwargs):
        kwargs.setdefault("hub", hub)
        machine = StateMachine(initial_state, mapper or counter_mapper, **kwargs)
        created.append(machine)
        return machine

    yield _factory
    for machine in created:
        machine.close(timeout=5.0)


@pytest.fixture
def error_classes():
    """Provides a tuple of error classes for quick reference."""
    from blocstate.core.errors import (
        EventQueueError,
        MachineClosedError,
        ObserverError,
        QueueFullError,
        StateMachineError,
        ValidationError,
    )

    return (StateMachineError, ValidationError, MachineClosedError, EventQueueError, QueueFullError, ObserverError)


@pytest.fixture(autouse=True)
def reset_default_hub():
    yield
    get_default_hub().set_observer(None)


@pytest.fixture(autouse=True)
def cleanup_threads():
    yield
    # Cleanup any remaining queue workers after each test
    for thread in threading.enumerate():
        if thread.name.endswith("-events") and thread is not threading.current_thread():
            thread.join(timeout=1.0)
