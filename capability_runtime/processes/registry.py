from __future__ import annotations

"""Process registry.

The registry is the single owner of every long-running side effect started in
one execution context. Each entry carries the closure that tears the effect
down, so any process can be stopped individually, per capability, per agent,
or all at once.

Notes:
    - One registry exists per execution context. A fresh context starts with
      an empty table; ``close`` is called on teardown and the registry then
      refuses new registrations.
    - ``stop*`` run cleanups inside a fault barrier: a raising cleanup is
      logged, the handle is still removed, and sibling cleanups still run.
    - A cleanup may return an awaitable; it is scheduled on the running loop
      and its failure is logged the same way.
"""

import asyncio
import inspect
import itertools
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from ..core.logging_config import get_logger
from ..errors import ContextClosed, ProcessCleanupFailed
from .models import ProcessHandle, ProcessType

logger = get_logger(__name__)


class ProcessRegistry:
    """In-memory table of active process handles for one execution context."""

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._processes: Dict[str, ProcessHandle] = {}
        self._counter = itertools.count(1)
        self._clock = clock
        self._closed = False
        self._pending_cleanups: set[asyncio.Future[Any]] = set()

    @property
    def closed(self) -> bool:
        return self._closed

    def _next_id(self, now_ms: int) -> str:
        while True:
            process_id = f"proc-{now_ms}-{next(self._counter)}"
            if process_id not in self._processes:
                return process_id

    def register(
        self,
        agent_id: str,
        capability_name: str,
        type: ProcessType,
        cleanup: Callable[[], Any],
        metadata: Optional[Dict[str, Any]] = None,
    ) -> str:
        """
        Register a long-running process for cleanup tracking.

        Args:
            agent_id: Owning agent definition id.
            capability_name: Capability that started the process.
            type: Kind of host resource backing the process.
            cleanup: Zero-argument callable that cancels the resource.
            metadata: Free-form description (target, event, interval...).

        Returns:
            The generated process id.

        Raises:
            ContextClosed: If the owning context has been torn down.
        """
        if self._closed:
            raise ContextClosed("process registry")
        if not callable(cleanup):
            raise TypeError("cleanup must be callable")

        now = self._clock()
        now_ms = int(now * 1000)
        process_id = self._next_id(now_ms)
        meta = dict(metadata or {})
        meta.setdefault("startTime", now_ms)
        handle = ProcessHandle(
            id=process_id,
            owner_agent_id=agent_id,
            capability_name=capability_name,
            type=ProcessType(type),
            cleanup=cleanup,
            metadata=meta,
            created_at=datetime.fromtimestamp(now, timezone.utc),
        )
        self._processes[process_id] = handle
        logger.info(f"Registered {handle.type.value} for {agent_id}.{capability_name} (ID: {process_id})")
        return process_id

    def stop(self, process_id: str) -> bool:
        """
        Stop a single process.

        Returns:
            True if the process was active and has been removed, False if it
            was unknown (including a second stop of the same id).
        """
        handle = self._processes.pop(process_id, None)
        if handle is None:
            logger.debug(f"Process {process_id} not found")
            return False

        self._run_cleanup(handle)
        logger.info(
            f"Stopped {handle.type.value} for {handle.owner_agent_id}.{handle.capability_name} (ID: {process_id})"
        )
        return True

    def _run_cleanup(self, handle: ProcessHandle) -> None:
        try:
            outcome = handle.cleanup()
        except Exception as e:
            logger.error(str(ProcessCleanupFailed(handle.id, e)), exc_info=True)
            return

        if inspect.isawaitable(outcome):
            try:
                asyncio.get_running_loop()
            except RuntimeError as e:
                if inspect.iscoroutine(outcome):
                    outcome.close()
                logger.error(str(ProcessCleanupFailed(handle.id, e)))
                return
            future = asyncio.ensure_future(outcome)
            self._pending_cleanups.add(future)
            future.add_done_callback(lambda f, pid=handle.id: self._on_cleanup_done(pid, f))

    def _on_cleanup_done(self, process_id: str, future: asyncio.Future[Any]) -> None:
        self._pending_cleanups.discard(future)
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.error(str(ProcessCleanupFailed(process_id, exc)))

    def _stop_many(self, process_ids: List[str]) -> int:
        return sum(1 for pid in process_ids if self.stop(pid))

    def stop_capability(self, agent_id: str, capability_name: str) -> int:
        """Stop every process started by ``agent_id``'s ``capability_name``."""
        ids = [h.id for h in self.list_by_capability(agent_id, capability_name)]
        count = self._stop_many(ids)
        logger.info(f"Stopped {count}/{len(ids)} processes for {agent_id}.{capability_name}")
        return count

    def stop_agent(self, agent_id: str) -> int:
        """Stop every process owned by ``agent_id``; other agents are untouched."""
        ids = [h.id for h in self.list(agent_id)]
        count = self._stop_many(ids)
        logger.info(f"Stopped {count}/{len(ids)} processes for {agent_id}")
        return count

    def stop_all(self) -> int:
        """Stop every registered process."""
        ids = list(self._processes.keys())
        count = self._stop_many(ids)
        logger.info(f"Stopped {count}/{len(ids)} processes")
        return count

    def list(self, agent_id: Optional[str] = None) -> List[ProcessHandle]:
        """List active processes, optionally only those owned by ``agent_id``."""
        if agent_id is None:
            return list(self._processes.values())
        return [h for h in self._processes.values() if h.owner_agent_id == agent_id]

    def list_by_capability(self, agent_id: str, capability_name: str) -> List[ProcessHandle]:
        return [
            h
            for h in self._processes.values()
            if h.owner_agent_id == agent_id and h.capability_name == capability_name
        ]

    def get(self, process_id: str) -> Optional[ProcessHandle]:
        return self._processes.get(process_id)

    def is_active(self, process_id: str) -> bool:
        return process_id in self._processes

    def close(self) -> int:
        """Stop everything and refuse further registrations."""
        count = self.stop_all()
        self._closed = True
        return count

    def __len__(self) -> int:
        return len(self._processes)
