from __future__ import annotations

"""Privileged-side endpoint of the bridge.

``BridgeHost`` listens on the privileged port, drops every inbound message
whose declared origin is not the expected untrusted peer, routes accepted
calls through the ``MethodRouter`` and posts exactly one response per call.
"""

from typing import Optional

from pydantic import ValidationError

from ..core.logging_config import get_logger
from .messages import CALL_TYPE, ApiCallMessage, ApiResponseMessage
from .router import MethodRouter
from .transport import Envelope, MessagePort

logger = get_logger(__name__)


class BridgeHost:
    def __init__(self, port: MessagePort, router: MethodRouter, *, expected_origin: str) -> None:
        self._port = port
        self._router = router
        self._expected_origin = expected_origin
        self.rejected_count = 0
        self._port.add_listener(self._on_message)

    @property
    def router(self) -> MethodRouter:
        return self._router

    async def _on_message(self, envelope: Envelope) -> None:
        data = envelope.data
        if not isinstance(data, dict) or data.get("type") != CALL_TYPE:
            return
        if envelope.origin != self._expected_origin:
            self.rejected_count += 1
            logger.warning(
                f"Rejected API call {data.get('id')!r} ({data.get('method')!r}) from origin '{envelope.origin}'"
            )
            return

        try:
            call = ApiCallMessage.model_validate(data)
        except ValidationError as e:
            call_id: Optional[str] = data.get("id") if isinstance(data.get("id"), str) else None
            logger.warning(f"Malformed API call dropped: {e}")
            if call_id is not None:
                self._respond(ApiResponseMessage(id=call_id, success=False, error="Malformed API call"))
            return

        logger.debug(f"Routing API call {call.id}: {call.method}")
        outcome = await self._router.dispatch(call.method, call.params)
        self._respond(
            ApiResponseMessage(id=call.id, success=outcome.success, result=outcome.result, error=outcome.error)
        )

    def _respond(self, response: ApiResponseMessage) -> None:
        self._port.post_message(response.to_wire())

    def close(self) -> None:
        self._port.remove_listener(self._on_message)
