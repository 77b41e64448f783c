"""Built-in agent definitions shipped with the runtime."""

from typing import List

from ..schemas.definitions import AgentDefinition
from .overlay_remover import OVERLAY_REMOVER_ID, overlay_remover


def builtin_definitions() -> List[AgentDefinition]:
    return [overlay_remover()]


__all__ = ["OVERLAY_REMOVER_ID", "builtin_definitions", "overlay_remover"]
