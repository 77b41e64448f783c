from __future__ import annotations

"""Collaborator contracts of the capability dispatcher.

The dispatcher depends on these Protocols instead of concrete storage.

Contract guidelines
-------------------

- Methods may be sync or async; the dispatcher awaits whatever is awaitable.
- Definitions are replaced as a whole by ``save_definition``, never patched.
- ``is_configured`` is True when every required config field of the
  definition has a non-empty stored value.
"""

from typing import Any, Awaitable, Dict, List, Optional, Protocol, Union

from ..schemas.definitions import AgentDefinition, ClientDefinition

AnyDefinition = Union[AgentDefinition, ClientDefinition]


class DefinitionStore(Protocol):
    """Load installed agent and client definitions."""

    def load_definition(self, definition_id: str) -> Union[Optional[AnyDefinition], Awaitable[Optional[AnyDefinition]]]:
        """
        Fetch a definition by id.

        Returns:
            The definition, or None if nothing is installed under ``definition_id``.
        """
        ...

    def list_definitions(self) -> Union[List[AnyDefinition], Awaitable[List[AnyDefinition]]]: ...

    def save_definition(self, definition: AnyDefinition) -> Union[None, Awaitable[None]]: ...


class CredentialStore(Protocol):
    """Per-definition configuration and credentials."""

    def is_configured(self, definition_id: str) -> Union[bool, Awaitable[bool]]: ...

    def get_config(self, definition_id: str) -> Union[Dict[str, Any], Awaitable[Dict[str, Any]]]: ...


class PolicyGate(Protocol):
    """Records user approval for definitions that contain privileged code."""

    def has_approval(self, definition_id: str) -> Union[bool, Awaitable[bool]]: ...

    def record_approval(self, definition_id: str, granted: bool) -> Union[None, Awaitable[None]]: ...
