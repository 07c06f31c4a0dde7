"""
Pytest configuration and fixtures for Agent Miyabi tests.
"""

import asyncio
from typing import Any, Dict, List, Optional

import pytest

from agent_miyabi.agents.base import BaseAgent
from agent_miyabi.models.core import AgentConfig, AgentTask
from agent_miyabi.orchestration.events import RecordingEventSink
from agent_miyabi.orchestration.orchestrator import AgentOrchestrator
from agent_miyabi.utils.config import OrchestrationConfig


class StubAgent(BaseAgent):
    """Configurable agent used across the test suite."""

    task_handlers = {
        "good": "handle_good",
        "bad": "handle_bad",
        "wait": "handle_wait",
    }

    def __init__(
        self,
        name: str,
        setup_error: Optional[BaseException] = None,
        cleanup_error: Optional[BaseException] = None,
        category: str = "general",
        capabilities: Optional[List[str]] = None
    ):
        super().__init__(AgentConfig(
            name=name,
            role=f"{name} role",
            category=category,
            capabilities=capabilities or ["testing"],
        ))
        self.setup_error = setup_error
        self.cleanup_error = cleanup_error
        self.setup_calls = 0
        self.cleanup_calls = 0
        self.processed: List[AgentTask] = []
        self.release = asyncio.Event()

    async def setup(self) -> None:
        self.setup_calls += 1
        await asyncio.sleep(0)
        if self.setup_error is not None:
            raise self.setup_error

    async def cleanup(self) -> None:
        self.cleanup_calls += 1
        if self.cleanup_error is not None:
            raise self.cleanup_error

    async def handle_good(self, task: AgentTask) -> Dict[str, Any]:
        self.processed.append(task)
        return {"agent": self.name, "input": task.input}

    async def handle_bad(self, task: AgentTask) -> Dict[str, Any]:
        self.processed.append(task)
        raise RuntimeError(f"{self.name} cannot handle this task")

    async def handle_wait(self, task: AgentTask) -> str:
        self.processed.append(task)
        await self.release.wait()
        return "released"


class PlainAgent:
    """Agent satisfying the contract without inheriting BaseAgent."""

    def __init__(self, name: str):
        self.name = name
        self.capabilities = {"plain"}
        self.ready = False

    async def setup(self) -> None:
        self.ready = True

    def process(self, task: AgentTask) -> str:
        return f"{self.name}:{task.type}"

    async def cleanup(self) -> None:
        self.ready = False


@pytest.fixture
def recording_sink() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture
def orchestrator(recording_sink) -> AgentOrchestrator:
    """Orchestrator with events captured in memory."""
    return AgentOrchestrator(
        OrchestrationConfig(shutdown_drain_timeout_seconds=1.0),
        sinks=[recording_sink]
    )


@pytest.fixture
def stub_agent() -> StubAgent:
    return StubAgent("stub")


@pytest.fixture
def failing_stub_agent() -> StubAgent:
    return StubAgent("broken", setup_error=RuntimeError("boom"))


@pytest.fixture
def good_task() -> AgentTask:
    return AgentTask(type="good", priority="high", input={"value": 42})


@pytest.fixture
def make_agent():
    """Factory for StubAgent instances."""
    return StubAgent


@pytest.fixture
def make_plain_agent():
    """Factory for agents that do not inherit BaseAgent."""
    return PlainAgent
