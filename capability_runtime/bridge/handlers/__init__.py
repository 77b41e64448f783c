"""Privileged namespace handlers served by the ``MethodRouter``.

Each handler wraps a host service protocol; the in-memory implementations
are used by tests and by the monitoring server.
"""

from .notifications import InMemoryNotificationService, NotificationService, NotificationsHandler
from .storage import InMemoryKeyValueStore, KeyValueStore, StorageHandler
from .tabs import InMemoryTabService, TabService, TabsHandler

__all__ = [
    "InMemoryNotificationService",
    "NotificationService",
    "NotificationsHandler",
    "InMemoryKeyValueStore",
    "KeyValueStore",
    "StorageHandler",
    "InMemoryTabService",
    "TabService",
    "TabsHandler",
]
