# blocstate/core/config.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from dataclasses import dataclass
from typing import Optional

from blocstate.core.errors import ValidationError
from blocstate.core.hooks import ObserverErrorPolicy


@dataclass(frozen=True)
class MachineConfig:
    """
    Per-machine settings.

    :param name: Label used for log records and worker thread names. Defaults
                 to the machine's class name.
    :param max_queue_size: Maximum number of pending events; 0 means unbounded.
    :param hook_errors: Failure policy for local hooks and state listeners.
    """

    name: Optional[str] = None
    max_queue_size: int = 0
    hook_errors: ObserverErrorPolicy = ObserverErrorPolicy.ISOLATE

    def __post_init__(self) -> None:
        if not isinstance(self.max_queue_size, int) or self.max_queue_size < 0:
            raise ValidationError(f"max_queue_size must be a non-negative integer, got {self.max_queue_size!r}")
        if not isinstance(self.hook_errors, ObserverErrorPolicy):
            raise ValidationError(f"hook_errors must be an ObserverErrorPolicy, got {self.hook_errors!r}")
        if self.name is not None and not self.name:
            raise ValidationError("name must not be empty")
