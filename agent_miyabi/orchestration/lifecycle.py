"""
Lifecycle Manager for Agent Miyabi.

Drives every registered agent through setup and cleanup. Both fan-outs start
all agents together and wait for all of them, so one slow or broken agent
never blocks or aborts its siblings.
"""

import asyncio
import inspect
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from ..models.core import LifecycleState
from ..models.errors import AgentExecutionError, AgentPhase
from ..utils.error_handler import ErrorHandler
from ..utils.logging import get_logger
from .events import EventEmitter, EventType
from .registry import AgentRecord, AgentRegistry

logger = get_logger(__name__)


@dataclass
class Settled:
    """Outcome of one awaitable in a settle-all fan-out."""
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def settle_all(awaitables: Iterable[Awaitable[Any]]) -> List[Settled]:
    """
    Run awaitables concurrently and collect a value or error for each.

    A failure never cancels the others. Results keep input order.
    """
    results = await asyncio.gather(*awaitables, return_exceptions=True)
    return [
        Settled(error=result) if isinstance(result, BaseException) else Settled(value=result)
        for result in results
    ]


async def invoke(func: Callable[[], Any]) -> Any:
    """Call a sync or async zero-argument callable and return its result."""
    result = func()
    if inspect.isawaitable(result):
        result = await result
    return result


@dataclass
class LifecycleSummary:
    """Per-agent outcome of a lifecycle fan-out."""
    succeeded: List[str] = field(default_factory=list)
    failed: Dict[str, AgentExecutionError] = field(default_factory=dict)

    @property
    def all_succeeded(self) -> bool:
        return not self.failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "succeeded": list(self.succeeded),
            "failed": {name: str(error) for name, error in self.failed.items()},
        }


class LifecycleManager:
    """Initializes and shuts down the agents held by a registry."""

    def __init__(
        self,
        registry: AgentRegistry,
        emitter: EventEmitter,
        error_handler: ErrorHandler,
        drain_timeout_seconds: float = 30.0
    ):
        self.registry = registry
        self.emitter = emitter
        self.error_handler = error_handler
        self.drain_timeout_seconds = drain_timeout_seconds

    async def initialize_all(self) -> LifecycleSummary:
        """
        Run ``setup`` for every UNINITIALIZED agent.

        Successful agents become READY, failing ones FAILED with the error
        recorded. Agents past UNINITIALIZED are left alone.

        Returns:
            LifecycleSummary of this call only
        """
        summary = LifecycleSummary()
        records = self.registry.in_state(LifecycleState.UNINITIALIZED)
        if not records:
            return summary

        for record in records:
            record.transition(LifecycleState.INITIALIZING)
            self.emitter.emit(EventType.AGENT_INITIALIZING, agent_name=record.name)

        outcomes = await settle_all(invoke(record.instance.setup) for record in records)

        for record, outcome in zip(records, outcomes):
            if outcome.ok:
                record.transition(LifecycleState.READY)
                summary.succeeded.append(record.name)
                self.emitter.emit(EventType.AGENT_READY, agent_name=record.name)
            else:
                error = self.error_handler.handle_agent_error(
                    record.name, AgentPhase.SETUP, outcome.error
                )
                record.last_error = error
                record.transition(LifecycleState.FAILED)
                summary.failed[record.name] = error
                self.emitter.emit(
                    EventType.AGENT_FAILED, agent_name=record.name,
                    details={"phase": AgentPhase.SETUP.value, "error": str(error)}
                )

        return summary

    async def shutdown_all(self) -> LifecycleSummary:
        """
        Run ``cleanup`` for every READY agent.

        Agents stop accepting tasks immediately, in-flight tasks are given
        ``drain_timeout_seconds`` to settle, then cleanup runs. Every agent
        ends SHUTDOWN whether or not its cleanup raised; cleanup errors are
        reported in the summary and never raised.

        Returns:
            LifecycleSummary of this call only
        """
        summary = LifecycleSummary()
        records = self.registry.in_state(LifecycleState.READY)
        if not records:
            return summary

        for record in records:
            record.transition(LifecycleState.SHUTTING_DOWN)
            self.emitter.emit(EventType.AGENT_SHUTTING_DOWN, agent_name=record.name)

        outcomes = await settle_all(self._shutdown_record(record) for record in records)

        for record, outcome in zip(records, outcomes):
            record.transition(LifecycleState.SHUTDOWN)
            if outcome.ok:
                summary.succeeded.append(record.name)
                self.emitter.emit(EventType.AGENT_SHUTDOWN, agent_name=record.name)
            else:
                error = self.error_handler.handle_agent_error(
                    record.name, AgentPhase.CLEANUP, outcome.error
                )
                record.last_error = error
                summary.failed[record.name] = error
                self.emitter.emit(
                    EventType.AGENT_FAILED, agent_name=record.name,
                    details={"phase": AgentPhase.CLEANUP.value, "error": str(error)}
                )

        return summary

    async def _shutdown_record(self, record: AgentRecord) -> None:
        await self._drain(record)
        await invoke(record.instance.cleanup)

    async def _drain(self, record: AgentRecord) -> None:
        pending = set(record.in_flight)
        if not pending:
            return

        logger.debug("Draining in-flight tasks", agent=record.name, pending=len(pending))
        _, still_pending = await asyncio.wait(pending, timeout=self.drain_timeout_seconds)
        if still_pending:
            logger.warning(
                "Shutdown drain timed out",
                agent=record.name,
                pending=len(still_pending),
                timeout_seconds=self.drain_timeout_seconds
            )
