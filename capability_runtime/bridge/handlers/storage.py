from __future__ import annotations

"""``storage`` namespace: key/value persistence owned by the privileged host."""

import copy
from typing import Any, Dict, List, Optional, Protocol, Union

from ..router import NamespaceHandler, Operation

Keys = Union[str, List[str], Dict[str, Any], None]


class KeyValueStore(Protocol):
    def get(self, keys: Keys = None) -> Dict[str, Any]: ...

    def set(self, items: Dict[str, Any]) -> None: ...

    def remove(self, keys: Union[str, List[str]]) -> None: ...

    def clear(self) -> None: ...


class InMemoryKeyValueStore:
    """Dict-backed ``KeyValueStore``.

    ``get`` follows the usual extension storage lookup rules:

    - ``None`` returns every item,
    - a key or list of keys returns only the keys present,
    - a dict returns stored values, falling back to the dict's values as
      defaults.
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._items: Dict[str, Any] = copy.deepcopy(initial or {})

    def get(self, keys: Keys = None) -> Dict[str, Any]:
        if keys is None:
            return copy.deepcopy(self._items)
        if isinstance(keys, dict):
            return {k: copy.deepcopy(self._items.get(k, default)) for k, default in keys.items()}
        wanted = [keys] if isinstance(keys, str) else list(keys)
        return {k: copy.deepcopy(self._items[k]) for k in wanted if k in self._items}

    def set(self, items: Dict[str, Any]) -> None:
        self._items.update(copy.deepcopy(items))

    def remove(self, keys: Union[str, List[str]]) -> None:
        for key in [keys] if isinstance(keys, str) else keys:
            self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()


class StorageHandler(NamespaceHandler):
    def __init__(self, store: KeyValueStore) -> None:
        self._store = store

    @property
    def namespace(self) -> str:
        return "storage"

    def operations(self) -> Dict[str, Operation]:
        return {
            "get": self._get,
            "set": self._set,
            "remove": self._remove,
            "clear": self._clear,
        }

    def _get(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return self._store.get(params.get("keys"))

    def _set(self, params: Dict[str, Any]) -> bool:
        items = params.get("items")
        if not isinstance(items, dict):
            raise ValueError("storage.set requires an 'items' object")
        self._store.set(items)
        return True

    def _remove(self, params: Dict[str, Any]) -> bool:
        keys = params.get("keys")
        if keys is None:
            raise ValueError("storage.remove requires 'keys'")
        self._store.remove(keys)
        return True

    def _clear(self, params: Dict[str, Any]) -> bool:
        self._store.clear()
        return True
