# blocstate/core/events.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from typing import Any


class Event:
    """
    Describes something that happened. Machines accept any value as an event;
    this class is a convenience for events that want a name and a payload with
    value semantics.

    Events are immutable: the name and payload are fixed at creation and two
    events with the same name and payload compare equal.
    """

    __slots__ = ("_name", "_payload")

    def __init__(self, name: str, payload: Any = None) -> None:
        """
        Create an event identified by a name, optionally carrying a payload.

        :param name: A string identifying this event.
        :param payload: Additional data describing the occurrence.
        """
        if not isinstance(name, str) or not name:
            raise ValueError("Event name must be a non-empty string")
        object.__setattr__(self, "_name", name)
        object.__setattr__(self, "_payload", payload)

    @property
    def name(self) -> str:
        """The name of the event."""
        return self._name

    @property
    def payload(self) -> Any:
        """Data attached to the event, or None."""
        return self._payload

    def __setattr__(self, key: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Event):
            return NotImplemented
        return type(self) is type(other) and self._name == other._name and self._payload == other._payload

    def __hash__(self) -> int:
        return hash((type(self).__name__, self._name, self._payload))

    def __repr__(self) -> str:
        if self._payload is None:
            return f"{type(self).__name__}({self._name!r})"
        return f"{type(self).__name__}({self._name!r}, payload={self._payload!r})"

    def __str__(self) -> str:
        return self._name
