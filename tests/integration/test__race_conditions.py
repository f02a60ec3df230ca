# tests/integration/test__race_conditions.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import random
import threading
import time

from blocstate import MachineConfig, MachineHooks, StateMachine


def test_many_submitters_never_interleave(hub, recorder):
    active = []
    overlaps = []
    lock = threading.Lock()

    def mapper(event, state):
        with lock:
            active.append(event)
            if len(active) > 1:
                overlaps.append(list(active))
        time.sleep(random.uniform(0, 0.001))
        yield state + 1
        time.sleep(random.uniform(0, 0.001))
        yield state + 2
        with lock:
            active.remove(event)

    machine = StateMachine(0, mapper, hub=hub)
    threads = [
        threading.Thread(target=lambda n=n: [machine.add((n, i)) for i in range(10)]) for n in range(8)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join(5.0)
    assert machine.close(timeout=10.0)

    assert overlaps == []
    assert machine.current_state == 160
    transitions = [t for _, t in recorder.transitions]
    assert len(transitions) == 160
    # Both transitions of one event are adjacent
    for first, second in zip(transitions[::2], transitions[1::2]):
        assert first.event == second.event
    # Each submitter's events keep their submission order
    for n in range(8):
        assert [i for (m, i) in (t.event for t in transitions[::2]) if m == n] == list(range(10))


def test_state_continuity_under_concurrency(hub):
    observed = []
    errors = []
    machine = None

    def check(transition):
        if transition.next_state != machine.current_state:
            errors.append(transition)
        observed.append(transition)

    def mapper(event, state):
        yield state + event

    machine = StateMachine(0, mapper, hooks=MachineHooks(on_transition=check), hub=hub)
    threads = [threading.Thread(target=lambda: [machine.add(1) for _ in range(50)]) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(5.0)
    assert machine.close(timeout=10.0)

    assert errors == []
    assert machine.current_state == 200
    for before, after in zip(observed, observed[1:]):
        assert after.current_state == before.next_state


def test_independent_machines_run_concurrently(hub, counter_mapper):
    machines = [StateMachine(0, counter_mapper, hub=hub, config=MachineConfig(name=f"m{i}")) for i in range(5)]

    def drive(machine):
        for _ in range(100):
            machine.add("increment")

    threads = [threading.Thread(target=drive, args=(m,)) for m in machines]
    for t in threads:
        t.start()
    for t in threads:
        t.join(5.0)
    for machine in machines:
        assert machine.close(timeout=10.0)
        assert machine.current_state == 100


def test_observer_replacement_during_processing(hub, recorder, counter_mapper):
    from blocstate import Observer

    class Counting(Observer):
        def __init__(self):
            self.count = 0

        def on_transition(self, machine, transition):
            self.count += 1

    replacement = Counting()
    machine = StateMachine(0, counter_mapper, hub=hub)
    for i in range(200):
        machine.add("increment")
        if i == 100:
            hub.set_observer(replacement)
    assert machine.close(timeout=10.0)

    # Every transition reached exactly one observer, none were replayed
    assert len(recorder.transitions) + replacement.count == 200
    assert machine.current_state == 200
