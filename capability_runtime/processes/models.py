from __future__ import annotations

"""Process registry data model.

A ``ProcessHandle`` represents one long-running side effect (observer, timer,
listener, socket, ...) started by a capability, together with the closure that
tears it down.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, Dict


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ProcessType(str, Enum):
    observer = "observer"
    interval = "interval"
    timeout = "timeout"
    event_listener = "eventListener"
    socket = "socket"
    intersection_observer = "intersectionObserver"
    frame_loop = "frameLoop"
    custom = "custom"


@dataclass(frozen=True)
class ProcessHandle:
    """Registry entry for one long-running side effect.

    Attributes
    ----------
    id:
        ``proc-<epoch-ms>-<counter>``, unique within the owning registry.
    owner_agent_id / capability_name:
        Who started the process; used for bulk stops.
    cleanup:
        Zero-argument callable that cancels the underlying resource.
    """

    id: str
    owner_agent_id: str
    capability_name: str
    type: ProcessType
    cleanup: Callable[[], Any] = field(repr=False, compare=False)
    metadata: Dict[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_utc_now)

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view without the cleanup closure."""
        return {
            "id": self.id,
            "ownerAgentId": self.owner_agent_id,
            "capabilityName": self.capability_name,
            "type": self.type.value,
            "metadata": dict(self.metadata),
            "createdAt": self.created_at.isoformat(),
        }
