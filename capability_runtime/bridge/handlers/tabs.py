from __future__ import annotations

"""``tabs`` namespace: open, update and query host tabs."""

import itertools
from typing import Any, Dict, List, Optional, Protocol

from ..router import NamespaceHandler, Operation


class TabService(Protocol):
    def create(self, url: str, active: bool = True) -> Dict[str, Any]: ...

    def update(self, tab_id: int, changes: Dict[str, Any]) -> Dict[str, Any]: ...

    def query(self, criteria: Dict[str, Any]) -> List[Dict[str, Any]]: ...


class InMemoryTabService:
    """Keeps tabs as plain dicts ``{id, url, active}``."""

    def __init__(self) -> None:
        self._tabs: Dict[int, Dict[str, Any]] = {}
        self._ids = itertools.count(1)

    def create(self, url: str, active: bool = True) -> Dict[str, Any]:
        tab_id = next(self._ids)
        if active:
            for tab in self._tabs.values():
                tab["active"] = False
        tab = {"id": tab_id, "url": url, "active": active}
        self._tabs[tab_id] = tab
        return dict(tab)

    def update(self, tab_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
        tab = self._tabs.get(tab_id)
        if tab is None:
            raise LookupError(f"No tab with id: {tab_id}")
        tab.update({k: v for k, v in changes.items() if k in ("url", "active")})
        return dict(tab)

    def query(self, criteria: Dict[str, Any]) -> List[Dict[str, Any]]:
        return [dict(t) for t in self._tabs.values() if all(t.get(k) == v for k, v in criteria.items())]


class TabsHandler(NamespaceHandler):
    def __init__(self, service: TabService) -> None:
        self._service = service

    @property
    def namespace(self) -> str:
        return "tabs"

    def operations(self) -> Dict[str, Operation]:
        return {"create": self._create, "update": self._update, "query": self._query}

    def _create(self, params: Dict[str, Any]) -> Dict[str, Any]:
        url: Optional[str] = params.get("url")
        if not url:
            raise ValueError("tabs.create requires a 'url'")
        return self._service.create(url, bool(params.get("active", True)))

    def _update(self, params: Dict[str, Any]) -> Dict[str, Any]:
        tab_id = params.get("tabId")
        if tab_id is None:
            raise ValueError("tabs.update requires a 'tabId'")
        changes = {k: v for k, v in params.items() if k != "tabId"}
        return self._service.update(int(tab_id), changes)

    def _query(self, params: Dict[str, Any]) -> List[Dict[str, Any]]:
        return self._service.query(dict(params.get("queryInfo") or params))
