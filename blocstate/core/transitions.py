# blocstate/core/transitions.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class Transition:
    """
    Record of one state change: the state the machine was in, the event that
    caused the change, and the state it moved to.

    A machine only builds a Transition when next_state differs from
    current_state, and builds exactly one per accepted change.
    """

    current_state: Any
    event: Any
    next_state: Any

    @property
    def previous_state(self) -> Any:
        """Alias for current_state, the state held before this transition."""
        return self.current_state

    def to_dict(self) -> Dict[str, Any]:
        """
        Return the transition as a key/value record for logging or inspection.
        """
        return {
            "currentState": self.current_state,
            "event": self.event,
            "nextState": self.next_state,
        }

    def to_json(self, **kwargs: Any) -> str:
        """
        Render the transition as JSON. Values that are not JSON serializable are
        rendered with str().

        :param kwargs: Passed through to json.dumps.
        """
        kwargs.setdefault("default", str)
        return json.dumps(self.to_dict(), **kwargs)

    def __str__(self) -> str:
        return (
            f"Transition {{ currentState: {self.current_state}, "
            f"event: {self.event}, nextState: {self.next_state} }}"
        )
