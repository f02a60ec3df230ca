# blocstate/interfaces/types.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details
from typing import Any, AsyncIterable, Awaitable, Callable, Iterable, Optional, Union

State = Any
EventValue = Any

# Mapper Types
Candidates = Optional[Iterable[State]]
Mapper = Callable[[EventValue, State], Candidates]
AsyncMapper = Callable[
    [EventValue, State],
    Union[Candidates, AsyncIterable[State], Awaitable[Candidates]],
]

# Callback Types
EventCallback = Callable[[EventValue], Any]
TransitionCallback = Callable[..., Any]
ErrorCallback = Callable[[Exception], Any]
StateListener = Callable[[State], Any]
Unsubscribe = Callable[[], None]
