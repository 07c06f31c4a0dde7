"""
Agent Registry for Agent Miyabi.

Name-keyed, insertion-ordered storage of agent records. Every record carries
the agent's lifecycle state and execution metrics.
"""

import asyncio
import threading
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterator, List, Optional, Set

from ..models.core import AgentDescriptor, LifecycleState
from ..models.errors import (
    AgentExecutionError, AgentNotFoundError, DuplicateAgentError,
    InvalidAgentError, InvalidStateTransitionError
)
from ..utils.logging import get_logger

logger = get_logger(__name__)


ALLOWED_TRANSITIONS = {
    LifecycleState.UNINITIALIZED: {LifecycleState.INITIALIZING},
    LifecycleState.INITIALIZING: {LifecycleState.READY, LifecycleState.FAILED},
    LifecycleState.READY: {LifecycleState.SHUTTING_DOWN},
    LifecycleState.SHUTTING_DOWN: {LifecycleState.SHUTDOWN},
    LifecycleState.FAILED: set(),
    LifecycleState.SHUTDOWN: set(),
}


@dataclass
class AgentMetrics:
    """Execution metrics for an agent."""
    total_executions: int = 0
    successful_executions: int = 0
    failed_executions: int = 0
    total_execution_time_ms: float = 0.0
    average_execution_time_ms: float = 0.0
    last_execution_time: Optional[datetime] = None
    last_error: Optional[str] = None
    last_error_time: Optional[datetime] = None

    def update_execution(self, success: bool, execution_time_ms: float, error: Optional[str] = None):
        """Update metrics after an execution."""
        self.total_executions += 1
        self.total_execution_time_ms += execution_time_ms
        self.average_execution_time_ms = self.total_execution_time_ms / self.total_executions
        self.last_execution_time = datetime.now()

        if success:
            self.successful_executions += 1
        else:
            self.failed_executions += 1
            if error:
                self.last_error = error
                self.last_error_time = datetime.now()

    def get_success_rate(self) -> float:
        """Calculate success rate as a percentage."""
        if self.total_executions == 0:
            return 0.0
        return (self.successful_executions / self.total_executions) * 100.0


@dataclass
class AgentRecord:
    """A registered agent with its lifecycle state."""
    descriptor: AgentDescriptor
    instance: Any
    state: LifecycleState = LifecycleState.UNINITIALIZED
    registered_at: datetime = field(default_factory=datetime.now)
    last_error: Optional[AgentExecutionError] = None
    metrics: AgentMetrics = field(default_factory=AgentMetrics)
    in_flight: Set[asyncio.Future] = field(default_factory=set)

    @property
    def name(self) -> str:
        return self.descriptor.name

    def is_ready(self) -> bool:
        return self.state == LifecycleState.READY

    def transition(self, target: LifecycleState) -> None:
        """
        Move to ``target``.

        Raises:
            InvalidStateTransitionError: If the state machine forbids the move
        """
        if target not in ALLOWED_TRANSITIONS[self.state]:
            raise InvalidStateTransitionError(self.name, self.state.value, target.value)
        logger.debug("Agent state changed", agent=self.name,
                     previous=self.state.value, state=target.value)
        self.state = target

    def to_status(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "role": self.descriptor.role,
            "category": self.descriptor.category,
            "state": self.state.value,
            "capabilities": sorted(self.descriptor.capabilities),
            "registered_at": self.registered_at.isoformat(),
            "in_flight_tasks": len(self.in_flight),
            "last_error": str(self.last_error) if self.last_error else None,
            "total_executions": self.metrics.total_executions,
            "success_rate": self.metrics.get_success_rate(),
            "average_execution_time_ms": self.metrics.average_execution_time_ms,
        }


def describe_agent(agent: Any) -> AgentDescriptor:
    """
    Build the descriptor for an agent, checking it satisfies the agent contract.

    Raises:
        InvalidAgentError: If the object is missing a name or lifecycle methods
    """
    name = getattr(agent, "name", None)
    if not isinstance(name, str) or not name:
        raise InvalidAgentError("Agent must expose a non-empty string name")

    missing = [method for method in ("setup", "process", "cleanup")
               if not callable(getattr(agent, method, None))]
    if missing:
        raise InvalidAgentError(
            f"Agent {name} is missing lifecycle methods: {', '.join(missing)}",
            agent_name=name
        )

    descriptor = getattr(agent, "descriptor", None)
    if isinstance(descriptor, AgentDescriptor):
        return descriptor

    return AgentDescriptor(
        name=name,
        capabilities=frozenset(getattr(agent, "capabilities", None) or ()),
        role=getattr(agent, "role", "") or "",
        category=getattr(agent, "category", "general") or "general",
    )


class AgentRegistry:
    """
    Uniqueness-checked storage and retrieval of agent records by name.

    Mutation of the name map is serialized with a lock; reads go straight to
    the map.
    """

    def __init__(self):
        self._records: Dict[str, AgentRecord] = {}
        self._lock = threading.Lock()

    def register(self, agent: Any) -> AgentRecord:
        """
        Register an agent in the UNINITIALIZED state.

        Args:
            agent: Object satisfying the agent contract

        Returns:
            The new AgentRecord

        Raises:
            DuplicateAgentError: If an agent with the same name exists
            InvalidAgentError: If the object is not a usable agent
        """
        descriptor = describe_agent(agent)

        with self._lock:
            if descriptor.name in self._records:
                raise DuplicateAgentError(descriptor.name)

            record = AgentRecord(descriptor=descriptor, instance=agent)
            self._records[descriptor.name] = record

        logger.debug("Registered agent", agent=descriptor.name)
        return record

    def lookup(self, name: str) -> AgentRecord:
        """
        Get the record for ``name``.

        Raises:
            AgentNotFoundError: If no agent is registered under that name
        """
        record = self._records.get(name)
        if record is None:
            raise AgentNotFoundError(name)
        return record

    def get(self, name: str) -> Optional[AgentRecord]:
        return self._records.get(name)

    def list_all(self) -> List[AgentRecord]:
        """All records in registration order."""
        return list(self._records.values())

    def names(self) -> List[str]:
        return list(self._records.keys())

    def by_category(self, category: str) -> List[AgentRecord]:
        return [record for record in self._records.values()
                if record.descriptor.category == category]

    def in_state(self, state: LifecycleState) -> List[AgentRecord]:
        return [record for record in self._records.values() if record.state == state]

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, name: object) -> bool:
        return name in self._records

    def __iter__(self) -> Iterator[AgentRecord]:
        return iter(self.list_all())
