"""Runtime schemas.

- ``actions``: the declarative action language (closed discriminated union).
- ``conditions``: condition and transform expressions used by actions.
- ``definitions``: agent/client definitions and ``CapabilityResult``.
"""

from .actions import ACTION_TYPES, Action, dump_actions, parse_actions
from .base import BaseSchema, FrozenSchema
from .definitions import (
    AgentDefinition,
    AuthConfig,
    AuthType,
    CapabilityDefinition,
    CapabilityResult,
    ClientCapabilityDefinition,
    ClientDefinition,
    ClientParameterSpec,
    ConfigField,
    Definition,
    DefinitionBase,
    ParameterSpec,
    ParameterType,
    parse_definition,
)

__all__ = [
    "ACTION_TYPES",
    "Action",
    "dump_actions",
    "parse_actions",
    "BaseSchema",
    "FrozenSchema",
    "AgentDefinition",
    "AuthConfig",
    "AuthType",
    "CapabilityDefinition",
    "CapabilityResult",
    "ClientCapabilityDefinition",
    "ClientDefinition",
    "ClientParameterSpec",
    "ConfigField",
    "Definition",
    "DefinitionBase",
    "ParameterSpec",
    "ParameterType",
    "parse_definition",
]
