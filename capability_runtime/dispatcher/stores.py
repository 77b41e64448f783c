from __future__ import annotations

"""In-memory implementations of the dispatcher collaborators."""

import copy
from typing import Any, Dict, Iterable, List, Optional

from ..core.logging_config import get_logger
from .interfaces import AnyDefinition

logger = get_logger(__name__)


class InMemoryDefinitionStore:
    def __init__(self, definitions: Optional[Iterable[AnyDefinition]] = None) -> None:
        self._definitions: Dict[str, AnyDefinition] = {}
        for definition in definitions or []:
            self.save_definition(definition)

    def load_definition(self, definition_id: str) -> Optional[AnyDefinition]:
        return self._definitions.get(definition_id)

    def list_definitions(self) -> List[AnyDefinition]:
        return list(self._definitions.values())

    def save_definition(self, definition: AnyDefinition) -> None:
        replaced = definition.id in self._definitions
        self._definitions[definition.id] = definition
        logger.info(f"{'Replaced' if replaced else 'Installed'} {definition.kind} definition '{definition.id}'")

    def delete_definition(self, definition_id: str) -> bool:
        return self._definitions.pop(definition_id, None) is not None


class InMemoryCredentialStore:
    """Config values per definition id.

    A definition is configured when every required ``ConfigField`` has a
    non-empty value. Unknown definitions are never configured.
    """

    def __init__(self, definitions: InMemoryDefinitionStore, configs: Optional[Dict[str, Dict[str, Any]]] = None) -> None:
        self._definitions = definitions
        self._configs: Dict[str, Dict[str, Any]] = copy.deepcopy(configs or {})

    def set_config(self, definition_id: str, config: Dict[str, Any]) -> None:
        self._configs[definition_id] = dict(config)

    def clear_config(self, definition_id: str) -> None:
        self._configs.pop(definition_id, None)

    def get_config(self, definition_id: str) -> Dict[str, Any]:
        definition = self._definitions.load_definition(definition_id)
        stored = dict(self._configs.get(definition_id, {}))
        if definition is not None:
            for field in definition.config_fields:
                if field.default is not None and stored.get(field.key) in (None, ""):
                    stored[field.key] = field.default
        return stored

    def is_configured(self, definition_id: str) -> bool:
        definition = self._definitions.load_definition(definition_id)
        if definition is None:
            return False
        config = self.get_config(definition_id)
        return all(config.get(key) not in (None, "") for key in definition.required_config_keys())


class InMemoryPolicyGate:
    def __init__(self) -> None:
        self._approvals: Dict[str, bool] = {}

    def has_approval(self, definition_id: str) -> bool:
        return self._approvals.get(definition_id, False)

    def record_approval(self, definition_id: str, granted: bool) -> None:
        self._approvals[definition_id] = granted
        logger.info(f"Approval for '{definition_id}' {'granted' if granted else 'revoked'}")
