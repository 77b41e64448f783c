from __future__ import annotations

import asyncio
from datetime import datetime, timezone

import pytest

from capability_runtime.errors import ContextClosed
from capability_runtime.processes import ProcessRegistry, ProcessType


class CleanupCounter:
    def __init__(self, fail: bool = False) -> None:
        self.calls = 0
        self.fail = fail

    def __call__(self) -> None:
        self.calls += 1
        if self.fail:
            raise RuntimeError("cleanup exploded")


@pytest.fixture
def registry() -> ProcessRegistry:
    return ProcessRegistry(clock=lambda: 1735689600.0)


def test_register_generates_unique_ids(registry: ProcessRegistry):
    first = registry.register("agent-a", "watch", ProcessType.observer, CleanupCounter())
    second = registry.register("agent-a", "watch", ProcessType.observer, CleanupCounter())

    assert first == "proc-1735689600000-1"
    assert second == "proc-1735689600000-2"
    assert len(registry) == 2


def test_register_records_owner_and_metadata(registry: ProcessRegistry):
    pid = registry.register("agent-a", "poll", ProcessType.interval, CleanupCounter(), {"intervalMs": 500})

    handle = registry.get(pid)
    assert handle is not None
    assert handle.owner_agent_id == "agent-a"
    assert handle.capability_name == "poll"
    assert handle.type is ProcessType.interval
    assert handle.metadata["intervalMs"] == 500
    assert handle.metadata["startTime"] == 1735689600000
    assert handle.created_at == datetime(2025, 1, 1, tzinfo=timezone.utc)


def test_register_rejects_non_callable_cleanup(registry: ProcessRegistry):
    with pytest.raises(TypeError):
        registry.register("agent-a", "poll", ProcessType.interval, "not callable")  # type: ignore[arg-type]


def test_stop_runs_cleanup_once_and_removes_handle(registry: ProcessRegistry):
    cleanup = CleanupCounter()
    pid = registry.register("agent-a", "poll", ProcessType.interval, cleanup)

    assert registry.stop(pid) is True
    assert registry.stop(pid) is False
    assert cleanup.calls == 1
    assert not registry.is_active(pid)


def test_stop_unknown_id_returns_false(registry: ProcessRegistry):
    assert registry.stop("proc-0-0") is False


def test_failing_cleanup_still_removes_handle_and_siblings_run(registry: ProcessRegistry):
    broken = CleanupCounter(fail=True)
    healthy = CleanupCounter()
    registry.register("agent-a", "watch", ProcessType.observer, broken)
    registry.register("agent-a", "watch", ProcessType.observer, healthy)

    assert registry.stop_all() == 2
    assert broken.calls == 1
    assert healthy.calls == 1
    assert len(registry) == 0


def test_stop_capability_only_touches_that_capability(registry: ProcessRegistry):
    poll = CleanupCounter()
    watch = CleanupCounter()
    registry.register("agent-a", "poll", ProcessType.interval, poll)
    registry.register("agent-a", "watch", ProcessType.observer, watch)

    assert registry.stop_capability("agent-a", "poll") == 1
    assert poll.calls == 1
    assert watch.calls == 0
    assert [h.capability_name for h in registry.list("agent-a")] == ["watch"]


def test_stop_agent_leaves_other_agents_untouched(registry: ProcessRegistry):
    mine = CleanupCounter()
    theirs = CleanupCounter()
    registry.register("agent-a", "poll", ProcessType.interval, mine)
    registry.register("agent-a", "watch", ProcessType.observer, mine)
    other = registry.register("agent-b", "poll", ProcessType.interval, theirs)

    assert registry.stop_agent("agent-a") == 2
    assert mine.calls == 2
    assert theirs.calls == 0
    assert registry.is_active(other)


def test_list_filters_by_agent(registry: ProcessRegistry):
    registry.register("agent-a", "poll", ProcessType.interval, CleanupCounter())
    registry.register("agent-b", "poll", ProcessType.interval, CleanupCounter())

    assert len(registry.list()) == 2
    assert [h.owner_agent_id for h in registry.list("agent-b")] == ["agent-b"]
    assert registry.list("agent-c") == []


def test_close_stops_everything_and_refuses_new_registrations(registry: ProcessRegistry):
    cleanup = CleanupCounter()
    registry.register("agent-a", "poll", ProcessType.interval, cleanup)

    assert registry.close() == 1
    assert registry.closed
    assert cleanup.calls == 1
    with pytest.raises(ContextClosed):
        registry.register("agent-a", "poll", ProcessType.interval, CleanupCounter())


def test_handle_to_dict_omits_cleanup(registry: ProcessRegistry):
    pid = registry.register("agent-a", "watch", ProcessType.event_listener, CleanupCounter(), {"event": "click"})

    data = registry.get(pid).to_dict()
    assert data["id"] == pid
    assert data["ownerAgentId"] == "agent-a"
    assert data["capabilityName"] == "watch"
    assert data["type"] == "eventListener"
    assert data["metadata"]["event"] == "click"
    assert data["createdAt"] == "2025-01-01T00:00:00+00:00"
    assert "cleanup" not in data


@pytest.mark.asyncio
async def test_async_cleanup_is_scheduled_on_running_loop(registry: ProcessRegistry):
    ran = []

    async def cleanup() -> None:
        ran.append(True)

    pid = registry.register("agent-a", "watch", ProcessType.custom, cleanup)
    assert registry.stop(pid) is True
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert ran == [True]


@pytest.mark.asyncio
async def test_failing_async_cleanup_is_contained(registry: ProcessRegistry):
    async def cleanup() -> None:
        raise RuntimeError("async cleanup exploded")

    registry.register("agent-a", "watch", ProcessType.custom, cleanup)
    assert registry.stop_all() == 1
    await asyncio.sleep(0)
    await asyncio.sleep(0)

    assert len(registry) == 0
