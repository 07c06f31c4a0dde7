"""
Task Dispatcher for Agent Miyabi.

Routes one task to one READY agent and turns whatever the agent returns or
raises into an AgentResponse.
"""

import asyncio
import inspect
import time
from datetime import datetime
from typing import Any

from ..models.core import AgentResponse, AgentTask, ResponseMetadata
from ..models.errors import AgentNotReadyError, AgentPhase
from ..utils.error_handler import ErrorHandler
from ..utils.logging import get_logger
from .events import EventEmitter, EventType
from .registry import AgentRecord, AgentRegistry

logger = get_logger(__name__)


class TaskDispatcher:
    """
    Dispatches tasks to registered agents.

    There is no queue, concurrency limit or timeout here: concurrent calls to
    the same agent run concurrently and a ``process`` that never settles only
    blocks its own caller.
    """

    def __init__(self, registry: AgentRegistry, emitter: EventEmitter, error_handler: ErrorHandler):
        self.registry = registry
        self.emitter = emitter
        self.error_handler = error_handler

    def resolve(self, agent_name: str) -> AgentRecord:
        """
        Find a READY record for ``agent_name``.

        Raises:
            AgentNotFoundError: If the name is unknown
            AgentNotReadyError: If the agent is in any state other than READY
        """
        record = self.registry.lookup(agent_name)
        if not record.is_ready():
            raise AgentNotReadyError(agent_name, state=record.state.value)
        return record

    async def dispatch(self, agent_name: str, task: AgentTask) -> AgentResponse:
        """
        Run ``task`` on the named agent.

        Args:
            agent_name: Registered agent name
            task: Task to process

        Returns:
            AgentResponse, successful iff the agent's ``process`` returned

        Raises:
            AgentNotFoundError: If the name is unknown
            AgentNotReadyError: If the agent is not READY
        """
        record = self.resolve(agent_name)
        self.emitter.emit(
            EventType.TASK_DISPATCHED, agent_name=agent_name, task_id=task.id,
            details={"task_type": task.type, "priority": task.priority.value}
        )

        start_time = time.monotonic()
        try:
            data = await self._run(record, task)
        except asyncio.CancelledError as e:
            # Only a cancellation of the caller propagates; one raised by the agent is a failure
            if asyncio.current_task().cancelling():
                raise
            return self._fail(record, task, e, start_time)
        except Exception as e:
            return self._fail(record, task, e, start_time)

        execution_time_ms = self._elapsed_ms(start_time)
        record.metrics.update_execution(True, execution_time_ms)
        self.emitter.emit(
            EventType.TASK_COMPLETED, agent_name=agent_name, task_id=task.id,
            details={"execution_time_ms": execution_time_ms}
        )
        return AgentResponse.ok(data, self._metadata(agent_name, task, execution_time_ms))

    async def _run(self, record: AgentRecord, task: AgentTask) -> Any:
        result = record.instance.process(task)
        if not inspect.isawaitable(result):
            return result

        # Tracked so shutdown can drain in-flight work
        future = asyncio.ensure_future(result)
        record.in_flight.add(future)
        try:
            return await future
        finally:
            record.in_flight.discard(future)

    def _fail(self, record: AgentRecord, task: AgentTask, cause: BaseException,
              start_time: float) -> AgentResponse:
        execution_time_ms = self._elapsed_ms(start_time)
        error = self.error_handler.handle_agent_error(
            record.name, AgentPhase.PROCESS, cause, task_id=task.id,
            context={"task_type": task.type}
        )
        record.metrics.update_execution(False, execution_time_ms, str(error))
        self.emitter.emit(
            EventType.TASK_FAILED, agent_name=record.name, task_id=task.id,
            details={"error": str(error), "execution_time_ms": execution_time_ms}
        )
        return AgentResponse.fail(error.details, self._metadata(record.name, task, execution_time_ms))

    def _elapsed_ms(self, start_time: float) -> int:
        return int((time.monotonic() - start_time) * 1000)

    def _metadata(self, agent_name: str, task: AgentTask, execution_time_ms: int) -> ResponseMetadata:
        return ResponseMetadata(
            agent_name=agent_name,
            task_id=task.id,
            execution_time_ms=execution_time_ms,
            timestamp=datetime.now(),
        )
