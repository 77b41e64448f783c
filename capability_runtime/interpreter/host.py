from __future__ import annotations

"""Page host boundary.

The interpreter never touches the page directly. Page effects and
host-backed watchers (mutation observers, event listeners, sockets,
intersection observers) go through a ``PageHost``.
"""

import inspect
import itertools
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Tuple

from ..core.logging_config import get_logger
from ..processes.models import ProcessType

logger = get_logger(__name__)

HostCallback = Callable[[Any], Awaitable[None]]


class PageHost(Protocol):
    async def execute_script(self, script: str, args: List[Any], timeout_ms: int) -> Any: ...

    async def add_style(self, target: str, styles: Dict[str, str]) -> int: ...

    def subscribe(
        self,
        kind: ProcessType,
        target: Optional[str],
        event: Optional[str],
        callback: HostCallback,
    ) -> Callable[[], None]:
        """Start watching; ``callback`` runs per notification. Returns the unsubscribe closure."""
        ...


@dataclass
class Subscription:
    id: int
    kind: ProcessType
    target: Optional[str]
    event: Optional[str]
    callback: HostCallback = field(repr=False)


class RecordingPageHost:
    """In-memory ``PageHost`` that records effects and lets tests fire watchers.

    ``script_handler`` computes ``execute_script`` results; without one the
    call returns ``None``. ``element_counts`` maps selectors to the number of
    elements ``add_style`` reports as styled (default 1).
    """

    def __init__(
        self,
        *,
        script_handler: Optional[Callable[[str, List[Any]], Any]] = None,
        element_counts: Optional[Dict[str, int]] = None,
    ) -> None:
        self.scripts: List[Tuple[str, List[Any], int]] = []
        self.styles: List[Tuple[str, Dict[str, str]]] = []
        self.subscriptions: Dict[int, Subscription] = {}
        self.unsubscribed: List[int] = []
        self._script_handler = script_handler
        self._element_counts = dict(element_counts or {})
        self._ids = itertools.count(1)

    async def execute_script(self, script: str, args: List[Any], timeout_ms: int) -> Any:
        self.scripts.append((script, list(args), timeout_ms))
        if self._script_handler is None:
            return None
        outcome = self._script_handler(script, list(args))
        if inspect.isawaitable(outcome):
            outcome = await outcome
        return outcome

    async def add_style(self, target: str, styles: Dict[str, str]) -> int:
        self.styles.append((target, dict(styles)))
        return self._element_counts.get(target, 1)

    def subscribe(
        self,
        kind: ProcessType,
        target: Optional[str],
        event: Optional[str],
        callback: HostCallback,
    ) -> Callable[[], None]:
        sub = Subscription(id=next(self._ids), kind=ProcessType(kind), target=target, event=event, callback=callback)
        self.subscriptions[sub.id] = sub
        logger.debug(f"Subscribed {sub.kind.value} on {target!r} ({event!r})")

        def unsubscribe() -> None:
            if self.subscriptions.pop(sub.id, None) is not None:
                self.unsubscribed.append(sub.id)

        return unsubscribe

    def matching(self, kind: Optional[ProcessType] = None, target: Optional[str] = None) -> List[Subscription]:
        return [
            s
            for s in self.subscriptions.values()
            if (kind is None or s.kind == kind) and (target is None or s.target == target)
        ]

    async def fire(
        self,
        kind: Optional[ProcessType] = None,
        target: Optional[str] = None,
        payload: Any = None,
    ) -> int:
        """Deliver ``payload`` to every matching live subscription; returns how many were notified."""
        subs = self.matching(kind, target)
        for sub in subs:
            await sub.callback(payload)
        return len(subs)
