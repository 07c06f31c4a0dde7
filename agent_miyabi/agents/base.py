"""
Base agent interface and common utilities for Agent Miyabi.
"""

import time
from abc import ABC
from typing import Any, ClassVar, Dict, FrozenSet, List, Protocol, runtime_checkable
from datetime import datetime

from ..models.core import AgentConfig, AgentDescriptor, AgentTask
from ..models.errors import UnsupportedTaskError
from ..utils.logging import LoggerMixin


@runtime_checkable
class Agent(Protocol):
    """Contract every agent registered with the orchestrator must satisfy."""

    name: str

    async def setup(self) -> None:
        ...

    async def process(self, task: AgentTask) -> Any:
        ...

    async def cleanup(self) -> None:
        ...


class BaseAgent(LoggerMixin, ABC):
    """
    Abstract base class for Agent Miyabi agents.

    Subclasses declare ``task_handlers`` mapping a task type to the name of a
    coroutine method taking the task. ``process`` routes each task to its
    handler and rejects types the agent does not know.
    """

    task_handlers: ClassVar[Dict[str, str]] = {}

    def __init__(self, config: AgentConfig):
        self.config = config
        self.descriptor = AgentDescriptor.from_config(config)
        self.created_at = datetime.now()

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def capabilities(self) -> FrozenSet[str]:
        return self.descriptor.capabilities

    @property
    def supported_task_types(self) -> List[str]:
        return list(self.task_handlers)

    async def setup(self) -> None:
        """Prepare the agent before it accepts tasks. Override when needed."""
        self.logger.debug("Agent setup completed", agent=self.name)

    async def cleanup(self) -> None:
        """Release anything acquired in ``setup``. Override when needed."""
        self.logger.debug("Agent cleanup completed", agent=self.name)

    async def process(self, task: AgentTask) -> Any:
        """
        Run the handler registered for ``task.type``.

        Args:
            task: Task to process

        Returns:
            Whatever the handler returns

        Raises:
            UnsupportedTaskError: If no handler exists for the task type
        """
        method_name = self.task_handlers.get(task.type)
        if method_name is None:
            raise UnsupportedTaskError(self.name, task.type)

        handler = getattr(self, method_name)
        self.log_task_started(task.type, agent=self.name, task_id=task.id)
        start_time = time.monotonic()
        try:
            result = await handler(task)
        except Exception as e:
            self.log_task_failed(task.type, e, self._elapsed_ms(start_time),
                                 agent=self.name, task_id=task.id)
            raise

        self.log_task_completed(task.type, self._elapsed_ms(start_time),
                                agent=self.name, task_id=task.id)
        return result

    def _elapsed_ms(self, start_time: float) -> int:
        return int((time.monotonic() - start_time) * 1000)

    def validate_input(self, data: Dict[str, Any], required_fields: List[str]) -> bool:
        """
        Validate that required fields are present in input data.

        Args:
            data: Input data dictionary
            required_fields: List of required field names

        Returns:
            bool: True if all required fields are present

        Raises:
            ValueError: If required fields are missing
        """
        if not isinstance(data, dict):
            raise ValueError("Task input must be a mapping")

        missing_fields = [field for field in required_fields if field not in data]

        if missing_fields:
            raise ValueError(f"Missing required fields: {', '.join(missing_fields)}")

        return True

    def get_status(self) -> Dict[str, Any]:
        """Static agent metadata."""
        return {
            "name": self.name,
            "role": self.config.role,
            "category": self.config.category,
            "description": self.config.description,
            "capabilities": sorted(self.capabilities),
            "task_types": self.supported_task_types,
            "created_at": self.created_at.isoformat(),
        }
