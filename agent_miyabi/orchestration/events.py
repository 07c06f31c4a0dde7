"""
Lifecycle and dispatch events emitted to observability sinks.
"""

import asyncio
import inspect
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Protocol, Set

from ..utils.logging import get_logger

logger = get_logger(__name__)


class EventType(str, Enum):
    """Kinds of orchestrator events."""
    AGENT_REGISTERED = "agent_registered"
    AGENT_INITIALIZING = "agent_initializing"
    AGENT_READY = "agent_ready"
    AGENT_FAILED = "agent_failed"
    AGENT_SHUTTING_DOWN = "agent_shutting_down"
    AGENT_SHUTDOWN = "agent_shutdown"
    TASK_DISPATCHED = "task_dispatched"
    TASK_COMPLETED = "task_completed"
    TASK_FAILED = "task_failed"
    WORKFLOW_STARTED = "workflow_started"
    WORKFLOW_COMPLETED = "workflow_completed"


FAILURE_EVENTS = frozenset({EventType.AGENT_FAILED, EventType.TASK_FAILED})


@dataclass
class OrchestratorEvent:
    """A single observability event."""
    type: EventType
    agent_name: Optional[str] = None
    task_id: Optional[str] = None
    workflow_id: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)
    details: Dict[str, Any] = field(default_factory=dict)


class EventSink(Protocol):
    """Receiver of orchestrator events. May return an awaitable."""

    def emit(self, event: OrchestratorEvent) -> Any:
        ...


class StructlogEventSink:
    """Writes events to a structlog logger."""

    def __init__(self, logger_name: str = "agent_miyabi.orchestrator"):
        self.logger = get_logger(logger_name)

    def emit(self, event: OrchestratorEvent) -> None:
        fields = {
            key: value for key, value in (
                ("agent_name", event.agent_name),
                ("task_id", event.task_id),
                ("workflow_id", event.workflow_id),
            ) if value is not None
        }
        fields.update(event.details)

        if event.type in FAILURE_EVENTS:
            self.logger.warning(event.type.value, **fields)
        else:
            self.logger.info(event.type.value, **fields)


class RecordingEventSink:
    """Keeps every event in memory, useful for inspection and tests."""

    def __init__(self):
        self.events: List[OrchestratorEvent] = []

    def emit(self, event: OrchestratorEvent) -> None:
        self.events.append(event)

    def types(self) -> List[EventType]:
        return [event.type for event in self.events]


class EventEmitter:
    """
    Fans events out to sinks, fire-and-forget.

    Sink failures are logged at debug level and dropped. Awaitables returned by
    sinks are scheduled on the running loop and never awaited by the caller.
    When disabled, nothing reaches the sinks.
    """

    def __init__(self, sinks: Optional[Iterable[EventSink]] = None, enabled: bool = True):
        self.sinks: List[EventSink] = list(sinks or [])
        self.enabled = enabled
        self._pending: Set[asyncio.Task] = set()

    def add_sink(self, sink: EventSink) -> None:
        self.sinks.append(sink)

    def emit(self, event_type: EventType, **kwargs: Any) -> None:
        if not self.enabled or not self.sinks:
            return

        event = OrchestratorEvent(type=event_type, **kwargs)
        for sink in self.sinks:
            try:
                result = sink.emit(event)
            except Exception as e:
                logger.debug("Event sink failed", sink=type(sink).__name__, error=str(e))
                continue

            if inspect.isawaitable(result):
                self._schedule(result)

    def _schedule(self, awaitable: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            logger.debug("Dropped async event outside of a running loop")
            return

        task = loop.create_task(self._run_sink(awaitable))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _run_sink(self, awaitable: Any) -> None:
        try:
            await awaitable
        except Exception as e:
            logger.debug("Async event sink failed", error=str(e))
