"""Capability dispatcher and its collaborator contracts.

This package exports:

- ``CapabilityDispatcher``: resolves and runs ``(definition, capability, parameters)``.
- ``DefinitionStore``/``CredentialStore``/``PolicyGate``: collaborator Protocols.
- ``InMemoryDefinitionStore``/``InMemoryCredentialStore``/``InMemoryPolicyGate``:
  reference implementations.
"""

from .dispatcher import CapabilityDispatcher
from .interfaces import AnyDefinition, CredentialStore, DefinitionStore, PolicyGate
from .stores import InMemoryCredentialStore, InMemoryDefinitionStore, InMemoryPolicyGate

__all__ = [
    "CapabilityDispatcher",
    "AnyDefinition",
    "CredentialStore",
    "DefinitionStore",
    "PolicyGate",
    "InMemoryCredentialStore",
    "InMemoryDefinitionStore",
    "InMemoryPolicyGate",
]
