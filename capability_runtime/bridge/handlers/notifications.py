from __future__ import annotations

"""``notifications`` namespace: user-visible host notifications."""

import itertools
from typing import Any, Dict, List, Optional, Protocol

from ..router import NamespaceHandler, Operation


class NotificationService(Protocol):
    def create(self, title: str, message: str, notification_id: Optional[str] = None) -> str: ...

    def clear(self, notification_id: str) -> bool: ...


class InMemoryNotificationService:
    def __init__(self) -> None:
        self.shown: Dict[str, Dict[str, str]] = {}
        self._ids = itertools.count(1)

    def create(self, title: str, message: str, notification_id: Optional[str] = None) -> str:
        nid = notification_id or f"notification-{next(self._ids)}"
        self.shown[nid] = {"title": title, "message": message}
        return nid

    def clear(self, notification_id: str) -> bool:
        return self.shown.pop(notification_id, None) is not None

    @property
    def titles(self) -> List[str]:
        return [n["title"] for n in self.shown.values()]


class NotificationsHandler(NamespaceHandler):
    def __init__(self, service: NotificationService) -> None:
        self._service = service

    @property
    def namespace(self) -> str:
        return "notifications"

    def operations(self) -> Dict[str, Operation]:
        return {"create": self._create, "clear": self._clear}

    def _create(self, params: Dict[str, Any]) -> str:
        title = params.get("title")
        message = params.get("message")
        if title is None or message is None:
            raise ValueError("notifications.create requires 'title' and 'message'")
        return self._service.create(str(title), str(message), params.get("notificationId"))

    def _clear(self, params: Dict[str, Any]) -> bool:
        notification_id = params.get("notificationId")
        if not notification_id:
            raise ValueError("notifications.clear requires a 'notificationId'")
        return self._service.clear(str(notification_id))
