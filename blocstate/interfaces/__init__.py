"""
Protocols and type aliases shared across the package.
"""

from .protocols import AbstractObserver, AbstractStateMachine

__all__ = ["AbstractObserver", "AbstractStateMachine"]
