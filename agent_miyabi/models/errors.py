"""
Error models and exceptions for Agent Miyabi.
"""

from pydantic import BaseModel, Field
from typing import Optional, Dict, Any
from datetime import datetime
from enum import Enum


class ErrorSeverity(str, Enum):
    """Error severity levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """Categories of errors."""
    REGISTRATION = "registration"
    LIFECYCLE = "lifecycle"
    DISPATCH = "dispatch"
    VALIDATION = "validation"
    NETWORK = "network"
    TIMEOUT = "timeout"
    PROCESSING = "processing"
    WORKFLOW = "workflow"
    SYSTEM = "system"


class AgentPhase(str, Enum):
    """Agent operation during which an error was raised."""
    SETUP = "setup"
    PROCESS = "process"
    CLEANUP = "cleanup"


class ErrorDetails(BaseModel):
    """Normalized description of an agent-level failure."""
    error_id: str = Field(..., min_length=1)
    error_type: str = Field(..., min_length=1)
    message: str
    category: ErrorCategory
    severity: ErrorSeverity
    phase: Optional[AgentPhase] = None
    agent_name: Optional[str] = None
    task_id: Optional[str] = None
    context: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=datetime.now)
    recoverable: bool = True


# Custom exceptions
class MiyabiError(Exception):
    """Base exception for Agent Miyabi."""

    def __init__(self, message: str, category: ErrorCategory = ErrorCategory.SYSTEM,
                 severity: ErrorSeverity = ErrorSeverity.MEDIUM, **kwargs):
        super().__init__(message)
        self.message = message
        self.category = category
        self.severity = severity
        self.context = kwargs


class DuplicateAgentError(MiyabiError):
    """An agent with the same name is already registered."""

    def __init__(self, agent_name: str, **kwargs):
        super().__init__(
            f"Agent already registered: {agent_name}",
            ErrorCategory.REGISTRATION, ErrorSeverity.HIGH,
            agent_name=agent_name, **kwargs
        )
        self.agent_name = agent_name


class InvalidAgentError(MiyabiError):
    """Object does not satisfy the agent contract."""

    def __init__(self, message: str, **kwargs):
        super().__init__(message, ErrorCategory.REGISTRATION, ErrorSeverity.HIGH, **kwargs)


class AgentNotFoundError(MiyabiError):
    """No agent is registered under the requested name."""

    def __init__(self, agent_name: str, **kwargs):
        super().__init__(
            f"Agent not found: {agent_name}",
            ErrorCategory.DISPATCH, ErrorSeverity.HIGH,
            agent_name=agent_name, **kwargs
        )
        self.agent_name = agent_name


class AgentNotReadyError(MiyabiError):
    """Target agent is not in the READY state."""

    def __init__(self, agent_name: str, state: Any = None, **kwargs):
        super().__init__(
            f"Agent not ready: {agent_name}",
            ErrorCategory.DISPATCH, ErrorSeverity.HIGH,
            agent_name=agent_name, state=state, **kwargs
        )
        self.agent_name = agent_name
        self.state = state


class AgentExecutionError(MiyabiError):
    """
    Wrapper around an exception raised inside an agent's setup, process or cleanup.

    The message is the original exception's message so summaries read the same
    as the underlying failure.
    """

    def __init__(self, agent_name: str, phase: AgentPhase, cause: BaseException,
                 details: Optional[ErrorDetails] = None):
        super().__init__(
            str(cause) or type(cause).__name__,
            details.category if details else ErrorCategory.PROCESSING,
            details.severity if details else ErrorSeverity.MEDIUM,
            agent_name=agent_name,
            phase=phase.value,
        )
        self.agent_name = agent_name
        self.phase = phase
        self.cause = cause
        self.details = details
        self.__cause__ = cause


class UnsupportedTaskError(MiyabiError):
    """Agent has no handler for the task type."""

    def __init__(self, agent_name: str, task_type: str, **kwargs):
        super().__init__(
            f"Unknown task type: {task_type}",
            ErrorCategory.VALIDATION, ErrorSeverity.HIGH,
            agent_name=agent_name, task_type=task_type, **kwargs
        )
        self.task_type = task_type


class WorkflowNotFoundError(MiyabiError):
    """No workflow is registered under the requested id."""

    def __init__(self, workflow_id: str, **kwargs):
        super().__init__(
            f"Workflow not found: {workflow_id}",
            ErrorCategory.WORKFLOW, ErrorSeverity.HIGH,
            workflow_id=workflow_id, **kwargs
        )
        self.workflow_id = workflow_id


class WorkflowDependencyError(MiyabiError):
    """A workflow step depends on a step that has not run yet."""

    def __init__(self, workflow_id: str, agent_name: str, missing: list, **kwargs):
        super().__init__(
            f"Dependencies not met for step with agent: {agent_name}",
            ErrorCategory.WORKFLOW, ErrorSeverity.HIGH,
            workflow_id=workflow_id, agent_name=agent_name, missing=missing, **kwargs
        )
        self.workflow_id = workflow_id
        self.agent_name = agent_name
        self.missing = missing


class InvalidStateTransitionError(MiyabiError):
    """Lifecycle transition not allowed by the agent state machine."""

    def __init__(self, agent_name: str, current: Any, target: Any, **kwargs):
        super().__init__(
            f"Invalid lifecycle transition for {agent_name}: {current} -> {target}",
            ErrorCategory.LIFECYCLE, ErrorSeverity.CRITICAL,
            agent_name=agent_name, **kwargs
        )
        self.agent_name = agent_name
        self.current = current
        self.target = target
