from __future__ import annotations

"""Untrusted-side RPC bridge.

``RpcBridge`` lets code in the untrusted execution context invoke privileged
host operations by name::

    bridge = RpcBridge(channel.port1, expected_origin="extension")
    items = await bridge.call("storage.get", {"keys": ["x"]})

Delivery guarantees
-------------------

- Each call gets a fresh ``api-<n>`` id; ids are never reused.
- A call resolves on the first matching response. Later duplicates are
  ignored.
- After ``timeout`` seconds the pending entry is dropped and the call raises
  ``RpcTimeout``; a response arriving afterwards is a no-op.
- Responses whose declared origin is not ``expected_origin`` are rejected.
"""

import asyncio
import itertools
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from pydantic import ValidationError

from ..core.logging_config import get_logger
from ..errors import ContextClosed, RpcRejected, RpcTimeout
from .messages import RESPONSE_TYPE, ApiCallMessage, ApiResponseMessage
from .transport import Envelope, MessagePort

logger = get_logger(__name__)

DEFAULT_RPC_TIMEOUT_SECONDS = 30.0


@dataclass
class PendingCall:
    id: str
    method: str
    future: asyncio.Future[Any]
    deadline: float
    timer: Optional[asyncio.TimerHandle] = field(default=None, repr=False)


class RpcBridge:
    """Request/response correlation over a ``MessagePort``."""

    def __init__(
        self,
        port: MessagePort,
        *,
        expected_origin: str,
        timeout: float = DEFAULT_RPC_TIMEOUT_SECONDS,
    ) -> None:
        """
        Initialize the bridge.

        Args:
            port: The untrusted context's end of the channel.
            expected_origin: Origin tag of the privileged peer; anything else is dropped.
            timeout: Seconds before a pending call is rejected with ``RpcTimeout``.
        """
        self._port = port
        self._expected_origin = expected_origin
        self._timeout = timeout
        self._pending: Dict[str, PendingCall] = {}
        self._ids = itertools.count(1)
        self._closed = False
        self._port.add_listener(self._on_message)

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def is_pending(self, call_id: str) -> bool:
        return call_id in self._pending

    async def call(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Invoke ``method`` on the privileged side.

        Returns:
            The ``result`` of a successful response.

        Raises:
            RpcTimeout: No response within the timeout window.
            RpcRejected: The privileged side answered ``success: false``.
            ContextClosed: The bridge was closed before or while waiting.
        """
        if self._closed:
            raise ContextClosed("rpc bridge")

        loop = asyncio.get_running_loop()
        call_id = f"api-{next(self._ids)}"
        future: asyncio.Future[Any] = loop.create_future()
        pending = PendingCall(id=call_id, method=method, future=future, deadline=loop.time() + self._timeout)
        pending.timer = loop.call_later(self._timeout, self._expire, call_id)
        self._pending[call_id] = pending

        message = ApiCallMessage(id=call_id, method=method, params=dict(params or {}))
        logger.debug(f"RPC call {call_id} -> {method}")
        try:
            self._port.post_message(message.to_wire())
            return await future
        finally:
            # Covers caller cancellation; normal completion already removed the entry.
            leftover = self._pending.pop(call_id, None)
            if leftover is not None and leftover.timer is not None:
                leftover.timer.cancel()

    def _expire(self, call_id: str) -> None:
        pending = self._pending.pop(call_id, None)
        if pending is None or pending.future.done():
            return
        logger.warning(f"RPC call {call_id} ({pending.method}) timed out after {self._timeout}s")
        pending.future.set_exception(RpcTimeout(pending.method, self._timeout))

    def _on_message(self, envelope: Envelope) -> None:
        data = envelope.data
        if not isinstance(data, dict) or data.get("type") != RESPONSE_TYPE:
            return
        if envelope.origin != self._expected_origin:
            logger.warning(f"Rejected RPC response from unexpected origin '{envelope.origin}'")
            return

        try:
            response = ApiResponseMessage.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Malformed RPC response dropped: {e}")
            return

        pending = self._pending.pop(response.id, None)
        if pending is None:
            logger.debug(f"Dropped late or duplicate RPC response {response.id}")
            return
        if pending.timer is not None:
            pending.timer.cancel()
        if pending.future.done():
            return

        if response.success:
            pending.future.set_result(response.result)
        else:
            pending.future.set_exception(RpcRejected(pending.method, response.error))

    def close(self) -> None:
        """Reject every pending call with ``ContextClosed`` and detach from the port."""
        self._closed = True
        self._port.remove_listener(self._on_message)
        pending, self._pending = self._pending, {}
        for entry in pending.values():
            if entry.timer is not None:
                entry.timer.cancel()
            if not entry.future.done():
                entry.future.set_exception(ContextClosed("rpc bridge"))
