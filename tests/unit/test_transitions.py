# tests/unit/test_transitions.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import dataclasses
import json

import pytest

from blocstate.core.events import Event
from blocstate.core.transitions import Transition


def test_transition_fields():
    t = Transition(current_state=0, event="increment", next_state=1)
    assert t.current_state == 0
    assert t.previous_state == 0
    assert t.event == "increment"
    assert t.next_state == 1


def test_transition_is_immutable():
    t = Transition(0, "increment", 1)
    with pytest.raises(dataclasses.FrozenInstanceError):
        t.next_state = 2


def test_transition_equality():
    assert Transition(0, "increment", 1) == Transition(0, "increment", 1)
    assert Transition(0, "increment", 1) != Transition(1, "increment", 2)


def test_transition_to_dict():
    t = Transition(0, "increment", 1)
    assert t.to_dict() == {"currentState": 0, "event": "increment", "nextState": 1}


def test_transition_to_json_uses_str_for_unknown_values():
    t = Transition(0, Event("increment"), 1)
    assert json.loads(t.to_json()) == {"currentState": 0, "event": "increment", "nextState": 1}


def test_transition_to_json_passes_kwargs():
    t = Transition(0, "increment", 1)
    assert t.to_json(sort_keys=True) == '{"currentState": 0, "event": "increment", "nextState": 1}'


def test_transition_str():
    t = Transition(0, "increment", 1)
    assert str(t) == "Transition { currentState: 0, event: increment, nextState: 1 }"
