"""
Watcher Module.

Deposit polling and debounced invest triggering.
"""

from .event_watcher import DepositLogPoller, EventWatcher

__all__ = [
    "DepositLogPoller",
    "EventWatcher",
]
