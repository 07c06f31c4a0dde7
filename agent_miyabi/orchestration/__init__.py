"""
Agent Orchestration Runtime for Agent Miyabi.

This package provides:
- Agent registry with unique names and lifecycle state per agent
- Lifecycle manager with failure-isolated setup and cleanup fan-outs
- Task dispatcher returning uniform response envelopes
- Observability events, workflows and the orchestrator facade
"""

from .orchestrator import AgentOrchestrator

from .registry import (
    AgentRegistry,
    AgentRecord,
    AgentMetrics,
    describe_agent
)

from .lifecycle import (
    LifecycleManager,
    LifecycleSummary,
    Settled,
    settle_all
)

from .dispatcher import TaskDispatcher

from .events import (
    EventEmitter,
    EventSink,
    EventType,
    OrchestratorEvent,
    RecordingEventSink,
    StructlogEventSink
)

from .workflows import WorkflowEngine

__all__ = [
    'AgentOrchestrator',
    'AgentRegistry',
    'AgentRecord',
    'AgentMetrics',
    'describe_agent',
    'LifecycleManager',
    'LifecycleSummary',
    'Settled',
    'settle_all',
    'TaskDispatcher',
    'EventEmitter',
    'EventSink',
    'EventType',
    'OrchestratorEvent',
    'RecordingEventSink',
    'StructlogEventSink',
    'WorkflowEngine'
]
