"""Declarative action interpreter.

This package exports:

- ``ActionInterpreter``: runs action trees and manages process-backed actions.
- ``ExecutionContext``: per-invocation bindings and ``{{ref}}`` resolution.
- ``PageHost``/``RecordingPageHost``: the page boundary and its in-memory stand-in.
- ``evaluate_condition``/``apply_transform``: expression evaluation.
"""

from .context import ExecutionContext
from .expressions import apply_transform, evaluate_condition
from .host import PageHost, RecordingPageHost, Subscription
from .interpreter import ActionInterpreter, ClientInvoker

__all__ = [
    "ActionInterpreter",
    "ClientInvoker",
    "ExecutionContext",
    "PageHost",
    "RecordingPageHost",
    "Subscription",
    "apply_transform",
    "evaluate_condition",
]
