"""
Core Pydantic data models for Agent Miyabi.
"""

from pydantic import BaseModel, Field, ConfigDict, model_validator
from typing import List, Optional, Dict, Any, FrozenSet
from datetime import datetime
from enum import Enum

from .errors import ErrorDetails


class LifecycleState(str, Enum):
    """Lifecycle states of a registered agent."""
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"
    SHUTTING_DOWN = "shutting_down"
    SHUTDOWN = "shutdown"

    @property
    def is_terminal(self) -> bool:
        return self in (LifecycleState.FAILED, LifecycleState.SHUTDOWN)


class TaskPriority(str, Enum):
    """Advisory task priority. The orchestrator never reorders by it."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class AgentConfig(BaseModel):
    """Static configuration an agent is constructed with."""
    name: str = Field(..., min_length=1)
    role: str = ""
    category: str = "general"
    description: str = ""
    capabilities: List[str] = Field(default_factory=list)
    dependencies: List[str] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)


class AgentDescriptor(BaseModel):
    """Identity and capabilities of an agent, fixed for its lifetime."""
    name: str = Field(..., min_length=1)
    capabilities: FrozenSet[str] = Field(default_factory=frozenset)
    role: str = ""
    category: str = "general"

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_config(cls, config: AgentConfig) -> "AgentDescriptor":
        return cls(
            name=config.name,
            capabilities=frozenset(config.capabilities),
            role=config.role,
            category=config.category,
        )


class AgentTask(BaseModel):
    """A typed unit of work addressed to a single agent."""
    type: str = Field(..., min_length=1)
    priority: TaskPriority = TaskPriority.MEDIUM
    input: Any = None
    id: Optional[str] = None
    context: Dict[str, Any] = Field(default_factory=dict)
    deadline: Optional[datetime] = None


class ResponseMetadata(BaseModel):
    """Execution metadata attached to every response."""
    agent_name: str
    task_id: Optional[str] = None
    execution_time_ms: int = Field(default=0, ge=0)
    timestamp: datetime = Field(default_factory=datetime.now)


class AgentResponse(BaseModel):
    """
    Uniform response envelope returned for every dispatched task.

    ``data`` is only set on success and ``error`` only on failure.
    """
    success: bool
    data: Optional[Any] = None
    error: Optional[ErrorDetails] = None
    metadata: Optional[ResponseMetadata] = None

    @model_validator(mode="after")
    def check_envelope(self) -> "AgentResponse":
        if self.success and self.error is not None:
            raise ValueError("successful response cannot carry an error")
        if not self.success:
            if self.error is None:
                raise ValueError("failed response requires an error")
            if self.data is not None:
                raise ValueError("failed response cannot carry data")
        return self

    @classmethod
    def ok(cls, data: Any, metadata: Optional[ResponseMetadata] = None) -> "AgentResponse":
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def fail(cls, error: ErrorDetails, metadata: Optional[ResponseMetadata] = None) -> "AgentResponse":
        return cls(success=False, error=error, metadata=metadata)


class WorkflowStep(BaseModel):
    """Single step of a workflow: one task for one agent."""
    agent_name: str = Field(..., min_length=1)
    task: AgentTask
    depends_on: List[str] = Field(default_factory=list)


class Workflow(BaseModel):
    """Ordered sequence of agent tasks with declared dependencies."""
    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    description: str = ""
    steps: List[WorkflowStep] = Field(default_factory=list)
