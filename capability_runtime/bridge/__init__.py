"""Cross-context RPC bridge.

Code in the untrusted page context calls privileged host operations by name
through ``RpcBridge``; the privileged side answers through ``BridgeHost`` and
its ``MethodRouter``. Both ends talk over a ``MessageChannel``.

This package exports:

- ``RpcBridge``: request/response correlation with timeouts.
- ``BridgeHost``/``MethodRouter``/``NamespaceHandler``: privileged dispatch.
- ``MessageChannel``/``MessagePort``/``Envelope``: the transport primitive.
- ``build_default_router``: router wired with in-memory host services.
"""

from typing import Optional

from .client import PendingCall, RpcBridge
from .handlers import (
    InMemoryKeyValueStore,
    InMemoryNotificationService,
    InMemoryTabService,
    KeyValueStore,
    NotificationService,
    NotificationsHandler,
    StorageHandler,
    TabService,
    TabsHandler,
)
from .host import BridgeHost
from .messages import CALL_TYPE, RESPONSE_TYPE, ApiCallMessage, ApiResponseMessage
from .router import MethodRouter, NamespaceHandler, RouterResponse
from .transport import Envelope, MessageChannel, MessagePort


def build_default_router(
    storage: Optional[KeyValueStore] = None,
    tabs: Optional[TabService] = None,
    notifications: Optional[NotificationService] = None,
) -> MethodRouter:
    """Router serving ``storage``, ``tabs`` and ``notifications``."""
    return MethodRouter(
        [
            StorageHandler(storage if storage is not None else InMemoryKeyValueStore()),
            TabsHandler(tabs if tabs is not None else InMemoryTabService()),
            NotificationsHandler(notifications if notifications is not None else InMemoryNotificationService()),
        ]
    )


__all__ = [
    "RpcBridge",
    "PendingCall",
    "BridgeHost",
    "MethodRouter",
    "NamespaceHandler",
    "RouterResponse",
    "MessageChannel",
    "MessagePort",
    "Envelope",
    "CALL_TYPE",
    "RESPONSE_TYPE",
    "ApiCallMessage",
    "ApiResponseMessage",
    "InMemoryKeyValueStore",
    "InMemoryNotificationService",
    "InMemoryTabService",
    "KeyValueStore",
    "NotificationService",
    "TabService",
    "StorageHandler",
    "TabsHandler",
    "NotificationsHandler",
    "build_default_router",
]
