"""Process registry for long-running capability side effects.

 Observers, timers, listeners and sockets started by capabilities are tracked
 here with their cleanup closures so they can be stopped individually or in
 bulk, and are guaranteed to be stopped when the execution context is torn
 down.

 This package exports:

 - ``ProcessRegistry``: the per-context table.
 - ``ProcessHandle``/``ProcessType``: entry model and resource kinds.
 """

from .models import ProcessHandle, ProcessType
from .registry import ProcessRegistry

__all__ = [
    "ProcessHandle",
    "ProcessType",
    "ProcessRegistry",
]
