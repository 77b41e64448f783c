from __future__ import annotations

"""In-process message passing primitive.

``MessageChannel`` connects two ``MessagePort`` objects, one per execution
context. Posting is asynchronous: the payload is copied through JSON (so only
JSON-serializable data crosses the boundary) and delivered to the peer's
listeners on a later turn of the event loop, tagged with the sender's origin.

Receivers are responsible for checking ``Envelope.origin``; a port delivers
everything it is given, including messages posted under a foreign origin by
code sharing the same context.
"""

import asyncio
import inspect
import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..core.logging_config import get_logger

logger = get_logger(__name__)

Listener = Callable[["Envelope"], Any]


@dataclass(frozen=True)
class Envelope:
    data: Dict[str, Any]
    origin: str


class MessagePort:
    """One end of a ``MessageChannel``."""

    def __init__(self, origin: str) -> None:
        self.origin = origin
        self._peer: Optional[MessagePort] = None
        self._listeners: List[Listener] = []
        self._tasks: set[asyncio.Task[Any]] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def post_message(self, data: Dict[str, Any], *, origin: Optional[str] = None) -> None:
        """
        Post ``data`` to the peer port.

        Args:
            data: JSON-serializable payload.
            origin: Declared sender origin; defaults to this port's origin.
                Overriding it models another script in the same context
                posting on the shared channel.
        """
        if self._closed or self._peer is None or self._peer._closed:
            logger.debug(f"Dropping message from '{self.origin}': channel closed")
            return
        payload = json.loads(json.dumps(data))
        envelope = Envelope(data=payload, origin=origin or self.origin)
        asyncio.get_running_loop().call_soon(self._peer._deliver, envelope)

    def post_local(self, data: Dict[str, Any], *, origin: str) -> None:
        """Deliver ``data`` to this port's own listeners, as other code in the same context could."""
        if self._closed:
            return
        envelope = Envelope(data=json.loads(json.dumps(data)), origin=origin)
        asyncio.get_running_loop().call_soon(self._deliver, envelope)

    def _deliver(self, envelope: Envelope) -> None:
        if self._closed:
            return
        for listener in list(self._listeners):
            try:
                outcome = listener(envelope)
            except Exception as e:
                logger.error(f"Message listener on '{self.origin}' failed: {e}", exc_info=True)
                continue
            if inspect.isawaitable(outcome):
                task = asyncio.ensure_future(outcome)
                self._tasks.add(task)
                task.add_done_callback(self._on_listener_done)

    def _on_listener_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Async message listener on '{self.origin}' failed: {task.exception()}")

    def close(self) -> None:
        self._closed = True
        self._listeners.clear()
        for task in list(self._tasks):
            task.cancel()


class MessageChannel:
    """A pair of connected ports, e.g. untrusted page side and privileged host side."""

    def __init__(self, first_origin: str = "page", second_origin: str = "extension") -> None:
        self.port1 = MessagePort(first_origin)
        self.port2 = MessagePort(second_origin)
        self.port1._peer = self.port2
        self.port2._peer = self.port1

    def close(self) -> None:
        self.port1.close()
        self.port2.close()
