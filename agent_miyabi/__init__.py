"""
Agent Miyabi: an orchestration runtime for business-document agents.
"""

from .agents import BaseAgent, BookkeeperAgent
from .models import (
    AgentConfig,
    AgentDescriptor,
    AgentResponse,
    AgentTask,
    LifecycleState,
    TaskPriority,
    Workflow,
    WorkflowStep,
    MiyabiError,
    DuplicateAgentError,
    AgentNotFoundError,
    AgentNotReadyError,
    AgentExecutionError
)
from .orchestration import AgentOrchestrator, LifecycleSummary
from .utils.config import OrchestrationConfig, SystemConfig, get_config
from .utils.logging import configure_logging

__version__ = "0.1.0"

__all__ = [
    'AgentOrchestrator',
    'LifecycleSummary',
    'BaseAgent',
    'BookkeeperAgent',
    'AgentConfig',
    'AgentDescriptor',
    'AgentResponse',
    'AgentTask',
    'LifecycleState',
    'TaskPriority',
    'Workflow',
    'WorkflowStep',
    'MiyabiError',
    'DuplicateAgentError',
    'AgentNotFoundError',
    'AgentNotReadyError',
    'AgentExecutionError',
    'OrchestrationConfig',
    'SystemConfig',
    'get_config',
    'configure_logging'
]
