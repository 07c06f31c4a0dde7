"""
Sequential multi-agent workflows.
"""

from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..models.core import AgentResponse, AgentTask, Workflow
from ..models.errors import WorkflowDependencyError, WorkflowNotFoundError
from ..utils.logging import get_logger
from .events import EventEmitter, EventType

logger = get_logger(__name__)

ExecuteTask = Callable[[str, AgentTask], Awaitable[AgentResponse]]


class WorkflowEngine:
    """
    Stores workflows and runs their steps one after another.

    Each step sees the caller's context plus the responses of every step that
    ran before it under ``previous_results``.
    """

    def __init__(self, execute_task: ExecuteTask, emitter: EventEmitter, continue_on_failure: bool = True):
        self._execute_task = execute_task
        self.emitter = emitter
        self.continue_on_failure = continue_on_failure
        self._workflows: Dict[str, Workflow] = {}

    def register(self, workflow: Workflow) -> None:
        """Store ``workflow``, replacing any workflow with the same id."""
        if workflow.id in self._workflows:
            logger.debug("Replacing workflow", workflow_id=workflow.id)
        self._workflows[workflow.id] = workflow

    def get(self, workflow_id: str) -> Optional[Workflow]:
        return self._workflows.get(workflow_id)

    def list_all(self) -> List[Workflow]:
        return list(self._workflows.values())

    def __len__(self) -> int:
        return len(self._workflows)

    async def execute(self, workflow_id: str, context: Optional[Dict[str, Any]] = None) -> Dict[str, AgentResponse]:
        """
        Run every step of a workflow in declared order.

        Args:
            workflow_id: Registered workflow id
            context: Values merged into every step's task context

        Returns:
            Responses keyed by step agent name, in execution order

        Raises:
            WorkflowNotFoundError: If the workflow id is unknown
            WorkflowDependencyError: If a step depends on a step that has not run
            AgentNotFoundError, AgentNotReadyError: If a step targets an unusable agent
        """
        workflow = self._workflows.get(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(workflow_id)

        context = dict(context or {})
        results: Dict[str, AgentResponse] = {}
        completed = set()
        self.emitter.emit(
            EventType.WORKFLOW_STARTED, workflow_id=workflow_id,
            details={"name": workflow.name, "steps": len(workflow.steps)}
        )

        for step in workflow.steps:
            missing = [dep for dep in step.depends_on if dep not in completed]
            if missing:
                raise WorkflowDependencyError(workflow_id, step.agent_name, missing)

            task = step.task.model_copy(update={
                "id": None,
                "context": {
                    **step.task.context,
                    **context,
                    "workflow_id": workflow_id,
                    "previous_results": dict(results),
                },
            })

            response = await self._execute_task(step.agent_name, task)
            results[step.agent_name] = response
            completed.add(step.agent_name)

            if not response.success and not self.continue_on_failure:
                logger.warning("Workflow stopped at failed step",
                               workflow_id=workflow_id, agent=step.agent_name)
                break

        self.emitter.emit(
            EventType.WORKFLOW_COMPLETED, workflow_id=workflow_id,
            details={
                "executed_steps": len(results),
                "failed_steps": [name for name, r in results.items() if not r.success],
            }
        )
        return results
