# tests/integration/test_properties.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from blocstate import Observer, ObserverHub, StateMachine, Transition


class RecordingObserver(Observer):
    def __init__(self):
        self.events = []
        self.transitions = []

    def on_event(self, machine, event):
        self.events.append((machine, event))

    def on_transition(self, machine, transition):
        self.transitions.append((machine, transition))


# Each event is the list of candidate states the mapper yields for it
events_strategy = st.lists(st.lists(st.integers(min_value=-3, max_value=3), max_size=5), max_size=20)


def replay(candidates_per_event, initial):
    """Reference model: the transitions a machine must emit."""
    expected = []
    state = initial
    for index, candidates in enumerate(candidates_per_event):
        for candidate in candidates:
            if candidate != state:
                expected.append(Transition(state, index, candidate))
                state = candidate
    return expected, state


def run_machine(candidates_per_event, initial):
    recorder = RecordingObserver()
    machine = StateMachine(initial, lambda index, state: iter(candidates_per_event[index]), hub=ObserverHub(recorder))
    for index in range(len(candidates_per_event)):
        machine.add(index)
    assert machine.close(timeout=10.0)
    return machine, recorder


@pytest.mark.property
@settings(max_examples=50, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(candidates_per_event=events_strategy, initial=st.integers(min_value=-3, max_value=3))
def test_transitions_match_reference_model(candidates_per_event, initial):
    machine, recorder = run_machine(candidates_per_event, initial)
    expected, final = replay(candidates_per_event, initial)
    transitions = [t for _, t in recorder.transitions]

    assert transitions == expected
    assert machine.current_state == final


@pytest.mark.property
@settings(max_examples=50, deadline=None, suppress_health_check=[HealthCheck.function_scoped_fixture])
@given(candidates_per_event=events_strategy, initial=st.integers(min_value=-3, max_value=3))
def test_transition_laws(candidates_per_event, initial):
    machine, recorder = run_machine(candidates_per_event, initial)
    transitions = [t for _, t in recorder.transitions]

    # No transition to an equal state
    assert all(t.current_state != t.next_state for t in transitions)
    # Events are processed in submission order
    event_order = [t.event for t in transitions]
    assert event_order == sorted(event_order)
    # Each transition starts where the previous one ended
    previous = initial
    for t in transitions:
        assert t.current_state == previous
        previous = t.next_state
    assert machine.current_state == previous
    # The hub saw every event exactly once
    assert [e for _, e in recorder.events] == list(range(len(candidates_per_event)))
