"""
Dashboard Module

This module holds the dashboard's state handling: immutable state
snapshots, the session that owns them, and cancellable scheduled tasks.
"""

from .scheduler import Debouncer, TaskSlot
from .session import (
    DashboardSession,
    DashboardState,
    initial_state,
    update_inputs
)

__all__ = [
    "Debouncer",
    "TaskSlot",
    "DashboardSession",
    "DashboardState",
    "initial_state",
    "update_inputs"
]
