"""
Agent Orchestrator for Agent Miyabi.

The single object callers interact with. It composes the registry, the
lifecycle manager and the task dispatcher, and adds workflows and batch
execution on top of them.
"""

import asyncio
import itertools
import time
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..models.core import AgentResponse, AgentTask, Workflow
from ..utils.config import OrchestrationConfig
from ..utils.error_handler import ErrorHandler
from ..utils.logging import get_logger
from .dispatcher import TaskDispatcher
from .events import EventEmitter, EventSink, EventType, StructlogEventSink
from .lifecycle import LifecycleManager, LifecycleSummary
from .registry import AgentRecord, AgentRegistry
from .workflows import WorkflowEngine

logger = get_logger(__name__)

TaskLike = Union[AgentTask, Mapping[str, Any]]


class AgentOrchestrator:
    """
    Registers agents, drives their lifecycle and routes tasks to them.

    Typical use::

        orchestrator = AgentOrchestrator()
        orchestrator.register_agent(BookkeeperAgent(BOOKKEEPER))
        await orchestrator.initialize_all()
        response = await orchestrator.execute_task("AI Bookkeeper", {"type": "trial-balance", ...})
        await orchestrator.shutdown_all()

    ``config.enable_logging`` only decides whether lifecycle and dispatch
    events reach the observability sinks.
    """

    def __init__(
        self,
        config: Optional[OrchestrationConfig] = None,
        sinks: Optional[Iterable[EventSink]] = None,
        error_handler: Optional[ErrorHandler] = None
    ):
        self.config = config or OrchestrationConfig()
        self.error_handler = error_handler or ErrorHandler()
        self.events = EventEmitter(
            sinks if sinks is not None else [StructlogEventSink()],
            enabled=self.config.enable_logging
        )

        self.registry = AgentRegistry()
        self.lifecycle = LifecycleManager(
            self.registry, self.events, self.error_handler,
            drain_timeout_seconds=self.config.shutdown_drain_timeout_seconds
        )
        self.dispatcher = TaskDispatcher(self.registry, self.events, self.error_handler)
        self.workflows = WorkflowEngine(
            self.execute_task, self.events,
            continue_on_failure=self.config.continue_on_failure
        )

        self._task_counter = itertools.count(1)

    # Registration

    def register_agent(self, agent: Any) -> None:
        """
        Register an agent under its name.

        Raises:
            DuplicateAgentError: If the name is already registered
            InvalidAgentError: If the object does not satisfy the agent contract
        """
        record = self.registry.register(agent)
        self.events.emit(
            EventType.AGENT_REGISTERED, agent_name=record.name,
            details={"role": record.descriptor.role, "category": record.descriptor.category}
        )

    def register_agents(self, agents: Iterable[Any]) -> None:
        """Register several agents in order, stopping at the first error."""
        for agent in agents:
            self.register_agent(agent)

    def get_agent(self, name: str) -> Optional[Any]:
        record = self.registry.get(name)
        return record.instance if record else None

    def get_record(self, name: str) -> AgentRecord:
        return self.registry.lookup(name)

    def list_agents(self) -> List[Dict[str, Any]]:
        return [record.to_status() for record in self.registry.list_all()]

    def get_agents_by_category(self, category: str) -> List[Any]:
        return [record.instance for record in self.registry.by_category(category)]

    # Lifecycle

    async def initialize_all(self) -> LifecycleSummary:
        """Set up every registered agent that has not been initialized yet."""
        return await self.lifecycle.initialize_all()

    async def shutdown_all(self) -> LifecycleSummary:
        """Clean up every READY agent. Never raises for agent errors."""
        return await self.lifecycle.shutdown_all()

    # Dispatch

    async def execute_task(self, agent_name: str, task: TaskLike) -> AgentResponse:
        """
        Run a task on the named agent.

        Args:
            agent_name: Registered agent name
            task: AgentTask or mapping with at least ``type``

        Returns:
            AgentResponse; agent failures come back as ``success=False``

        Raises:
            AgentNotFoundError: If the name is unknown
            AgentNotReadyError: If the agent is not READY
            pydantic.ValidationError: If a mapping is not a valid task
        """
        return await self.dispatcher.dispatch(agent_name, self._prepare_task(task))

    async def execute_parallel(self, requests: Sequence[Tuple[str, TaskLike]]) -> List[AgentResponse]:
        """
        Run several tasks concurrently.

        Every target is checked before anything starts, so a bad agent name
        fails the whole batch without side effects. At most
        ``config.max_concurrent_tasks`` tasks of the batch run at once.

        Returns:
            Responses in request order
        """
        prepared = [(agent_name, self._prepare_task(task)) for agent_name, task in requests]
        for agent_name, _ in prepared:
            self.dispatcher.resolve(agent_name)

        semaphore = asyncio.Semaphore(self.config.max_concurrent_tasks)

        async def run(agent_name: str, task: AgentTask) -> AgentResponse:
            async with semaphore:
                return await self.dispatcher.dispatch(agent_name, task)

        logger.debug("Executing tasks in parallel", count=len(prepared))
        return list(await asyncio.gather(*(run(name, task) for name, task in prepared)))

    # Workflows

    def register_workflow(self, workflow: Union[Workflow, Mapping[str, Any]]) -> None:
        if not isinstance(workflow, Workflow):
            workflow = Workflow.model_validate(workflow)
        self.workflows.register(workflow)

    async def execute_workflow(self, workflow_id: str,
                               context: Optional[Dict[str, Any]] = None) -> Dict[str, AgentResponse]:
        return await self.workflows.execute(workflow_id, context)

    # Status

    def get_system_status(self) -> Dict[str, Any]:
        records = self.registry.list_all()
        states: Dict[str, int] = {}
        for record in records:
            states[record.state.value] = states.get(record.state.value, 0) + 1

        return {
            "total_agents": len(records),
            "total_workflows": len(self.workflows),
            "agent_states": states,
            "agents": [record.to_status() for record in records],
            "workflows": [
                {"id": w.id, "name": w.name, "steps": len(w.steps)}
                for w in self.workflows.list_all()
            ],
            "error_stats": self.error_handler.get_error_stats(),
        }

    def _prepare_task(self, task: TaskLike) -> AgentTask:
        if not isinstance(task, AgentTask):
            task = AgentTask.model_validate(dict(task))
        if task.id is None:
            task = task.model_copy(update={"id": self._generate_task_id()})
        return task

    def _generate_task_id(self) -> str:
        return f"task-{int(time.time() * 1000)}-{next(self._task_counter)}"
