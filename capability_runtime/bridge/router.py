from __future__ import annotations

"""Method router for the privileged side of the bridge.

``method`` strings are ``"<namespace>.<action>"``. Each namespace is served by
one ``NamespaceHandler`` wrapping a privileged host service. The router never
raises: unknown namespaces, unknown actions and handler errors all come back
as ``RouterResponse(success=False, error=...)`` so the host can answer every
call.
"""

import inspect
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from ..core.logging_config import get_logger

logger = get_logger(__name__)

Operation = Callable[[Dict[str, Any]], Any]


@dataclass(frozen=True)
class RouterResponse:
    success: bool
    result: Any = None
    error: Optional[str] = None


class NamespaceHandler(ABC):
    """Base class for one router namespace (``storage``, ``tabs``...)."""

    @property
    @abstractmethod
    def namespace(self) -> str: ...

    @abstractmethod
    def operations(self) -> Dict[str, Operation]:
        """Map of action name to callable taking the call's ``params``."""

    def has_action(self, action: str) -> bool:
        return action in self.operations()

    async def handle(self, action: str, params: Dict[str, Any]) -> Any:
        operation = self.operations().get(action)
        if operation is None:
            raise LookupError(f"Unknown {self.namespace} action: {action}")
        outcome = operation(params)
        if inspect.isawaitable(outcome):
            outcome = await outcome
        return outcome


class MethodRouter:
    """Resolves ``namespace.action`` method names to privileged handlers."""

    def __init__(self, handlers: Optional[List[NamespaceHandler]] = None) -> None:
        self._handlers: Dict[str, NamespaceHandler] = {}
        for handler in handlers or []:
            self.register(handler)

    def register(self, handler: NamespaceHandler) -> None:
        """Register ``handler``; replaces any handler for the same namespace."""
        self._handlers[handler.namespace] = handler

    @property
    def namespaces(self) -> List[str]:
        return sorted(self._handlers)

    async def dispatch(self, method: str, params: Optional[Dict[str, Any]] = None) -> RouterResponse:
        """
        Route one call.

        Args:
            method: ``"<namespace>.<action>"``.
            params: Call parameters passed to the handler.

        Returns:
            ``RouterResponse`` carrying either the handler's result or an
            error message.
        """
        namespace, _, action = method.partition(".")
        handler = self._handlers.get(namespace)
        if handler is None:
            return RouterResponse(success=False, error=f"Unknown API: {namespace}")
        if not handler.has_action(action):
            return RouterResponse(success=False, error=f"Unknown {namespace} action: {action}")

        try:
            result = await handler.handle(action, dict(params or {}))
        except Exception as e:
            logger.error(f"Handler for '{method}' failed: {e}", exc_info=True)
            return RouterResponse(success=False, error=str(e) or type(e).__name__)
        return RouterResponse(success=True, result=result)

