"""
Runtime package for event queueing and execution.

Architecture:
- Serializes each machine's events
- Drains on a worker thread (EventQueue) or an asyncio task (AsyncEventQueue)
- Records failures that escape processing

The asyncio machine lives in blocstate.runtime.async_support, which depends on
blocstate.core and is therefore not imported here.
"""

from .event_queue import EventQueue

__all__ = ["EventQueue"]
