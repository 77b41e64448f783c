from __future__ import annotations

"""Action interpreter.

``ActionInterpreter`` walks a capability's action tree against an
``ExecutionContext``.

Execution model
---------------

- Lists of actions run strictly in order. The value of a list is the value
  of its last action, unless a ``return`` short-circuits it.
- ``return`` unwinds every enclosing level (``if``, ``forEach``, ``while``,
  ``sequence``) and becomes the capability's result.
- The first action that raises aborts the invocation. The error is wrapped
  once in ``ActionExecutionFailed`` at the innermost failing action and
  propagates unchanged through its ancestors. Nothing is retried.

Processes
---------

``startProcess`` and ``registerCleanup`` register exactly one handle in the
``ProcessRegistry`` and return its id immediately:

- ``interval``, ``timeout`` and ``frameLoop`` bodies are asyncio tasks owned
  by the interpreter,
- ``observer``, ``eventListener``, ``socket`` and ``intersectionObserver``
  are ``PageHost`` subscriptions whose notifications run the body,
- ``custom`` runs the body once, inline.

The handle's cleanup sets the task's stop flag or cancels the subscription,
then runs the ``cleanup`` actions. Stopping never interrupts a body that is
already running; a task process exits at its next sleep. Errors inside a
running process body are logged; there is no caller left to receive them.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol, Sequence, Union

from ..bridge.client import RpcBridge
from ..core.config import InterpreterConfig, settings
from ..core.logging_config import get_logger
from ..errors import (
    ActionExecutionFailed,
    CapabilityRuntimeError,
    ClientRequestFailed,
    ScriptExecutionDisabled,
    UnknownActionType,
)
from ..processes.models import ProcessType
from ..processes.registry import ProcessRegistry
from ..schemas.actions import (
    ACTION_TYPES,
    Action,
    AddStyleAction,
    CallClientAction,
    ExecuteScriptAction,
    ForEachAction,
    GetVariableAction,
    IfAction,
    MergeAction,
    NotifyAction,
    RegisterCleanupAction,
    ReturnAction,
    SequenceAction,
    SetVariableAction,
    StartProcessAction,
    StopProcessAction,
    StorageGetAction,
    StorageSetAction,
    TabsCreateAction,
    TransformAction,
    WaitAction,
    WhileAction,
    parse_actions,
)
from ..schemas.definitions import CapabilityResult
from .context import ExecutionContext
from .expressions import apply_transform, evaluate_condition
from .host import PageHost

logger = get_logger(__name__)

FRAME_INTERVAL_MS = 16

_TASK_PROCESSES = {ProcessType.interval, ProcessType.timeout, ProcessType.frame_loop}
_HOST_PROCESSES = {
    ProcessType.observer,
    ProcessType.event_listener,
    ProcessType.socket,
    ProcessType.intersection_observer,
}


class ClientInvoker(Protocol):
    """Runs a capability of a client definition on behalf of ``callClient``."""

    async def invoke_client(
        self,
        client_id: str,
        capability_name: str,
        parameters: Dict[str, Any],
        call_context: Dict[str, Any],
    ) -> CapabilityResult: ...


def _noop() -> None:
    return None


class _Return(Exception):
    def __init__(self, value: Any) -> None:
        super().__init__("return")
        self.value = value


ActionHandler = Callable[[Any, ExecutionContext], Awaitable[Any]]


class ActionInterpreter:
    """Execute declarative action trees.

    Every member of the ``Action`` union must have a handler; construction
    fails with ``UnknownActionType`` naming the first one that does not.
    """

    def __init__(
        self,
        *,
        registry: ProcessRegistry,
        bridge: Optional[RpcBridge],
        host: PageHost,
        clients: Optional[ClientInvoker] = None,
        config: Optional[InterpreterConfig] = None,
    ) -> None:
        self._registry = registry
        self._bridge = bridge
        self._host = host
        self._clients = clients
        self._config = config or settings.interpreter
        self._tasks: set[asyncio.Task[Any]] = set()
        self._handlers: Dict[type, ActionHandler] = {
            SequenceAction: self._run_sequence,
            IfAction: self._run_if,
            ForEachAction: self._run_for_each,
            WhileAction: self._run_while,
            ReturnAction: self._run_return,
            AddStyleAction: self._run_add_style,
            NotifyAction: self._run_notify,
            ExecuteScriptAction: self._run_execute_script,
            StorageGetAction: self._run_storage_get,
            StorageSetAction: self._run_storage_set,
            TabsCreateAction: self._run_tabs_create,
            CallClientAction: self._run_call_client,
            StartProcessAction: self._run_start_process,
            RegisterCleanupAction: self._run_register_cleanup,
            StopProcessAction: self._run_stop_process,
            SetVariableAction: self._run_set,
            GetVariableAction: self._run_get,
            TransformAction: self._run_transform,
            MergeAction: self._run_merge,
            WaitAction: self._run_wait,
        }
        self._check_exhaustive()

    def _check_exhaustive(self) -> None:
        for model in ACTION_TYPES:
            if model not in self._handlers:
                raise UnknownActionType(model.model_fields["type"].default)

    @property
    def registry(self) -> ProcessRegistry:
        return self._registry

    def set_client_invoker(self, clients: Optional[ClientInvoker]) -> None:
        self._clients = clients

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    async def execute(
        self,
        actions: Sequence[Union[Action, Dict[str, Any]]],
        context: ExecutionContext,
    ) -> CapabilityResult:
        """
        Run ``actions`` and report the outcome as a ``CapabilityResult``.

        The result's ``data`` is the ``return`` value if one fired, otherwise
        the value of the last top-level action.
        """
        try:
            data = await self.run(actions, context)
        except CapabilityRuntimeError as e:
            logger.error(f"{context.agent_id}.{context.capability_name} failed: {e}")
            return CapabilityResult.fail(e.code, str(e))
        return CapabilityResult.ok(data)

    async def run(self, actions: Sequence[Union[Action, Dict[str, Any]]], context: ExecutionContext) -> Any:
        """Like ``execute`` but raises ``ActionExecutionFailed`` instead of returning a failed result."""
        typed = self._coerce(actions)
        try:
            return await self._run_list(typed, context)
        except _Return as r:
            return r.value

    @staticmethod
    def _coerce(actions: Sequence[Union[Action, Dict[str, Any]]]) -> List[Action]:
        if all(not isinstance(a, dict) for a in actions):
            return list(actions)  # type: ignore[arg-type]
        return parse_actions([a if isinstance(a, dict) else a.model_dump(by_alias=True) for a in actions])

    async def _run_list(self, actions: Sequence[Action], ctx: ExecutionContext) -> Any:
        last: Any = None
        for action in actions:
            last = await self._run_action(action, ctx)
        return last

    async def _run_action(self, action: Action, ctx: ExecutionContext) -> Any:
        handler = self._handlers.get(type(action))
        if handler is None:
            raise UnknownActionType(getattr(action, "type", type(action).__name__))
        try:
            return await handler(action, ctx)
        except (_Return, ActionExecutionFailed):
            raise
        except Exception as e:
            logger.debug(f"Action '{action.type}' failed in {ctx.agent_id}.{ctx.capability_name}: {e}")
            raise ActionExecutionFailed(action.type, e) from e

    def _save(self, ctx: ExecutionContext, save_as: Optional[str], value: Any) -> Any:
        if save_as:
            ctx.set_variable(save_as, value)
        return value

    def _require_bridge(self) -> RpcBridge:
        if self._bridge is None:
            raise RuntimeError("No RPC bridge is attached to this interpreter")
        return self._bridge

    # ------------------------------------------------------------------
    # Control flow
    # ------------------------------------------------------------------

    async def _run_sequence(self, action: SequenceAction, ctx: ExecutionContext) -> Any:
        return await self._run_list(action.actions, ctx)

    async def _run_if(self, action: IfAction, ctx: ExecutionContext) -> Any:
        if evaluate_condition(action.condition, ctx):
            return await self._run_list(action.then, ctx)
        if action.else_ is not None:
            return await self._run_list(action.else_, ctx)
        return None

    async def _run_for_each(self, action: ForEachAction, ctx: ExecutionContext) -> List[Any]:
        source = ctx.lookup(action.source)
        if not isinstance(source, list):
            raise TypeError(f"forEach source '{action.source}' is not an array")
        results = []
        for index, item in enumerate(list(source)):
            scope = ctx.child(**{action.item_as: item, action.index_as: index})
            results.append(await self._run_list(action.do, scope))
        return results

    async def _run_while(self, action: WhileAction, ctx: ExecutionContext) -> List[Any]:
        max_iterations = action.max_iterations or self._config.default_while_max_iterations
        results = []
        iterations = 0
        while evaluate_condition(action.condition, ctx):
            if iterations >= max_iterations:
                # Condition still holds after the last permitted iteration.
                logger.warning(
                    f"While loop in {ctx.agent_id}.{ctx.capability_name} reached max iterations ({max_iterations})"
                )
                break
            results.append(await self._run_list(action.do, ctx))
            iterations += 1
        return results

    async def _run_return(self, action: ReturnAction, ctx: ExecutionContext) -> Any:
        raise _Return(ctx.resolve_value(action.value))

    # ------------------------------------------------------------------
    # Page and privileged effects
    # ------------------------------------------------------------------

    async def _run_add_style(self, action: AddStyleAction, ctx: ExecutionContext) -> int:
        target = ctx.resolve_value(action.target)
        styles = ctx.resolve_value(action.styles)
        return await self._host.add_style(target, styles)

    async def _run_execute_script(self, action: ExecuteScriptAction, ctx: ExecutionContext) -> Any:
        if not self._config.allow_script_actions:
            raise ScriptExecutionDisabled()
        args = [ctx.lookup(name) for name in action.args]
        timeout_ms = action.timeout or self._config.default_script_timeout_ms
        result = await self._host.execute_script(action.script, args, timeout_ms)
        return self._save(ctx, action.save_as, result)

    async def _run_notify(self, action: NotifyAction, ctx: ExecutionContext) -> None:
        params = {"title": ctx.resolve_value(action.title), "message": ctx.resolve_value(action.message)}
        try:
            await self._require_bridge().call("notifications.create", params)
        except Exception as e:
            logger.warning(f"Notification from {ctx.agent_id}.{ctx.capability_name} failed: {e}")
        return None

    async def _run_storage_get(self, action: StorageGetAction, ctx: ExecutionContext) -> Any:
        keys = ctx.resolve_value(action.keys)
        result = await self._require_bridge().call("storage.get", {"keys": keys})
        return self._save(ctx, action.save_as, result)

    async def _run_storage_set(self, action: StorageSetAction, ctx: ExecutionContext) -> None:
        await self._require_bridge().call("storage.set", {"items": ctx.resolve_value(action.items)})
        return None

    async def _run_tabs_create(self, action: TabsCreateAction, ctx: ExecutionContext) -> Any:
        tab = await self._require_bridge().call("tabs.create", {"url": ctx.resolve_value(action.url)})
        return self._save(ctx, action.save_as, tab)

    async def _run_call_client(self, action: CallClientAction, ctx: ExecutionContext) -> Any:
        if self._clients is None:
            raise RuntimeError("No client invoker is attached to this interpreter")
        client_id = ctx.resolve_value(action.client)
        method = ctx.resolve_value(action.method)
        result = await self._clients.invoke_client(client_id, method, ctx.resolve_value(action.params), ctx.call_context)
        if not result.success:
            raise ClientRequestFailed(client_id, result.status, result.detail or result.error or "request failed")
        return self._save(ctx, action.save_as, result.data)

    # ------------------------------------------------------------------
    # Processes
    # ------------------------------------------------------------------

    async def _run_start_process(self, action: StartProcessAction, ctx: ExecutionContext) -> str:
        kind = action.process_type
        metadata: Dict[str, Any] = {
            k: v
            for k, v in {
                "description": action.description,
                "target": ctx.resolve_value(action.target),
                "event": action.event,
                "intervalMs": action.interval_ms,
                "delayMs": action.delay_ms,
            }.items()
            if v is not None
        }

        task: Optional[asyncio.Task[Any]] = None
        if kind in _TASK_PROCESSES:
            if kind == ProcessType.interval and action.interval_ms is None:
                raise ValueError("interval processes require intervalMs")
            stopped = asyncio.Event()
            task = self._spawn(self._process_loop(action, ctx, stopped))
            stop_resource = stopped.set
        elif kind in _HOST_PROCESSES:

            async def on_notify(payload: Any) -> None:
                await self._run_body(action.actions, ctx, payload)

            stop_resource = self._host.subscribe(kind, metadata.get("target"), action.event, on_notify)
        else:
            await self.run(action.actions, ctx)
            stop_resource = _noop

        try:
            process_id = self._registry.register(
                ctx.agent_id,
                ctx.capability_name,
                kind,
                self._make_cleanup(stop_resource, action.cleanup, ctx),
                metadata,
            )
        except Exception:
            stop_resource()
            raise

        if task is not None and kind == ProcessType.timeout:
            task.add_done_callback(lambda t, pid=process_id: self._retire_fired_timeout(pid, t))
        return self._save(ctx, action.save_as, process_id)

    async def _run_register_cleanup(self, action: RegisterCleanupAction, ctx: ExecutionContext) -> str:
        await self.run(action.actions, ctx)
        metadata = {"description": action.description} if action.description else {}
        process_id = self._registry.register(
            ctx.agent_id,
            ctx.capability_name,
            ProcessType.custom,
            self._make_cleanup(_noop, action.cleanup, ctx),
            metadata,
        )
        return self._save(ctx, action.save_as, process_id)

    async def _run_stop_process(self, action: StopProcessAction, ctx: ExecutionContext) -> bool:
        return self._registry.stop(str(ctx.resolve_value(action.process_id)))

    def _make_cleanup(
        self,
        stop_resource: Callable[[], Any],
        cleanup_actions: List[Action],
        ctx: ExecutionContext,
    ) -> Callable[[], Any]:
        def cleanup() -> Any:
            stop_resource()
            if cleanup_actions:
                return self.run(cleanup_actions, ctx.child())
            return None

        return cleanup

    async def _process_loop(self, action: StartProcessAction, ctx: ExecutionContext, stopped: asyncio.Event) -> None:
        """
        Drive a task-backed process until its handle is stopped.

        Stopping only wakes the sleep between runs. A body already running
        completes before the loop notices the stop.
        """
        kind = action.process_type
        if kind == ProcessType.timeout:
            if await self._sleep_until_stopped((action.delay_ms or 0) / 1000, stopped):
                return
            await self._run_body(action.actions, ctx)
            return
        interval_ms = action.interval_ms or FRAME_INTERVAL_MS
        while not stopped.is_set():
            if await self._sleep_until_stopped(interval_ms / 1000, stopped):
                return
            await self._run_body(action.actions, ctx)

    @staticmethod
    async def _sleep_until_stopped(seconds: float, stopped: asyncio.Event) -> bool:
        """Sleep for ``seconds``; True if the process was stopped meanwhile."""
        try:
            await asyncio.wait_for(stopped.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass
        return stopped.is_set()

    def _retire_fired_timeout(self, process_id: str, task: asyncio.Task[Any]) -> None:
        # A fired timeout has nothing left to cancel.
        if not task.cancelled():
            self._registry.stop(process_id)

    async def _run_body(self, actions: List[Action], ctx: ExecutionContext, payload: Any = None) -> None:
        try:
            await self.run(actions, ctx.child(payload=payload))
        except CapabilityRuntimeError as e:
            logger.error(f"Process body in {ctx.agent_id}.{ctx.capability_name} failed: {e}")

    def _spawn(self, coro: Awaitable[Any]) -> asyncio.Task[Any]:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Process task failed: {task.exception()}")

    def cancel_tasks(self) -> int:
        """Cancel every process task still running; used on context teardown."""
        tasks = [t for t in self._tasks if not t.done()]
        for task in tasks:
            task.cancel()
        return len(tasks)

    # ------------------------------------------------------------------
    # Data operations
    # ------------------------------------------------------------------

    async def _run_set(self, action: SetVariableAction, ctx: ExecutionContext) -> Any:
        value = ctx.resolve_value(action.value)
        ctx.set_variable(action.variable, value)
        return value

    async def _run_get(self, action: GetVariableAction, ctx: ExecutionContext) -> Any:
        return self._save(ctx, action.save_as, ctx.lookup(action.variable))

    async def _run_transform(self, action: TransformAction, ctx: ExecutionContext) -> Any:
        return self._save(ctx, action.save_as, apply_transform(ctx.lookup(action.source), action.transform))

    async def _run_merge(self, action: MergeAction, ctx: ExecutionContext) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}
        for source in action.sources:
            value = ctx.lookup(source)
            if value is None:
                continue
            if not isinstance(value, dict):
                raise TypeError(f"merge source '{source}' is not an object")
            merged.update(value)
        return self._save(ctx, action.save_as, merged)

    async def _run_wait(self, action: WaitAction, ctx: ExecutionContext) -> None:
        ms = ctx.resolve_value(action.ms)
        await asyncio.sleep(max(float(ms), 0.0) / 1000)
        return None

