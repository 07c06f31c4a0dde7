"""
Data models for Agent Miyabi.
"""

from .core import (
    LifecycleState,
    TaskPriority,
    AgentConfig,
    AgentDescriptor,
    AgentTask,
    ResponseMetadata,
    AgentResponse,
    WorkflowStep,
    Workflow
)

from .errors import (
    ErrorSeverity,
    ErrorCategory,
    AgentPhase,
    ErrorDetails,
    MiyabiError,
    DuplicateAgentError,
    InvalidAgentError,
    AgentNotFoundError,
    AgentNotReadyError,
    AgentExecutionError,
    UnsupportedTaskError,
    WorkflowNotFoundError,
    WorkflowDependencyError,
    InvalidStateTransitionError
)

__all__ = [
    'LifecycleState',
    'TaskPriority',
    'AgentConfig',
    'AgentDescriptor',
    'AgentTask',
    'ResponseMetadata',
    'AgentResponse',
    'WorkflowStep',
    'Workflow',
    'ErrorSeverity',
    'ErrorCategory',
    'AgentPhase',
    'ErrorDetails',
    'MiyabiError',
    'DuplicateAgentError',
    'InvalidAgentError',
    'AgentNotFoundError',
    'AgentNotReadyError',
    'AgentExecutionError',
    'UnsupportedTaskError',
    'WorkflowNotFoundError',
    'WorkflowDependencyError',
    'InvalidStateTransitionError'
]
