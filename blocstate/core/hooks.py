# blocstate/core/hooks.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Optional

from blocstate.core.errors import ObserverError
from blocstate.interfaces.types import ErrorCallback, EventCallback, TransitionCallback

logger = logging.getLogger(__name__)


class ObserverErrorPolicy(Enum):
    """Decides what happens when a hook, listener or observer raises."""

    ISOLATE = auto()  # Log the failure and keep processing
    PROPAGATE = auto()  # Raise ObserverError


@dataclass(frozen=True)
class MachineHooks:
    """
    Optional callbacks local to one machine, composed at construction time.

    on_event receives each event accepted by add(), on_transition each emitted
    Transition (after the machine's current state has been updated), and
    on_error each exception raised by the mapper. Callbacks may be coroutine
    functions when used with an AsyncStateMachine.
    """

    on_event: Optional[EventCallback] = None
    on_transition: Optional[TransitionCallback] = None
    on_error: Optional[ErrorCallback] = None


def _handle_failure(error: Exception, policy: ObserverErrorPolicy, label: str) -> None:
    if policy is ObserverErrorPolicy.PROPAGATE:
        raise ObserverError(f"{label} failed: {error}", hook=label) from error
    logger.exception("%s failed; continuing", label)


def call_hook(hook: Optional[Callable[..., Any]], *args: Any, policy: ObserverErrorPolicy, label: str) -> Any:
    """
    Invoke a synchronous hook, applying the failure policy.

    :param hook: The callable to invoke, or None for a no-op.
    :param args: Positional arguments for the hook.
    :param policy: What to do if the hook raises.
    :param label: Name used in log records and ObserverError.
    :return: Whatever the hook returned, or None.
    :raises ObserverError: If the hook raises under PROPAGATE.
    """
    if hook is None:
        return None
    try:
        return hook(*args)
    except Exception as e:
        _handle_failure(e, policy, label)
        return None


async def call_hook_async(
    hook: Optional[Callable[..., Any]], *args: Any, policy: ObserverErrorPolicy, label: str
) -> Any:
    """
    Invoke a hook that may be a coroutine function, awaiting its result.
    Failures raised while awaiting are handled like synchronous failures.
    """
    if hook is None:
        return None
    try:
        result = hook(*args)
        if inspect.isawaitable(result):
            result = await result
        return result
    except Exception as e:
        _handle_failure(e, policy, label)
        return None


def call_sync_hook(hook: Optional[Callable[..., Any]], *args: Any, policy: ObserverErrorPolicy, label: str) -> None:
    """
    Invoke a hook from code that cannot await. A coroutine returned by the
    hook is closed unrun and reported, since nothing would ever await it.
    """
    result = call_hook(hook, *args, policy=policy, label=label)
    if inspect.isawaitable(result):
        discard_awaitable(result)
        logger.warning("%s returned an awaitable; coroutine hooks need an AsyncStateMachine", label)


def discard_awaitable(awaitable: Any) -> None:
    close = getattr(awaitable, "close", None)
    if close is not None:
        close()
