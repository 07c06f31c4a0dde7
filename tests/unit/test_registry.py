"""
Unit tests for the agent registry.
"""

import threading

import pytest

from agent_miyabi.models.core import AgentDescriptor, LifecycleState
from agent_miyabi.models.errors import (
    AgentNotFoundError, DuplicateAgentError, InvalidAgentError, InvalidStateTransitionError
)
from agent_miyabi.orchestration.registry import AgentMetrics, AgentRegistry, describe_agent


class TestAgentRegistry:
    """Test cases for AgentRegistry."""

    def test_register_creates_uninitialized_record(self, make_agent):
        registry = AgentRegistry()
        agent = make_agent("writer")

        record = registry.register(agent)

        assert record.name == "writer"
        assert record.state == LifecycleState.UNINITIALIZED
        assert record.instance is agent
        assert registry.lookup("writer") is record

    def test_duplicate_name_raises_and_keeps_original(self, make_agent):
        registry = AgentRegistry()
        original = make_agent("writer")
        registry.register(original)

        with pytest.raises(DuplicateAgentError) as exc_info:
            registry.register(make_agent("writer"))

        assert exc_info.value.agent_name == "writer"
        assert len(registry) == 1
        assert registry.lookup("writer").instance is original
        assert registry.lookup("writer").state == LifecycleState.UNINITIALIZED

    def test_list_all_is_insertion_ordered(self, make_agent):
        registry = AgentRegistry()
        for name in ["c", "a", "b"]:
            registry.register(make_agent(name))

        assert [record.name for record in registry.list_all()] == ["c", "a", "b"]
        assert registry.names() == ["c", "a", "b"]

    def test_lookup_unknown_name(self):
        registry = AgentRegistry()

        with pytest.raises(AgentNotFoundError) as exc_info:
            registry.lookup("nonexistent")

        assert "Agent not found: nonexistent" in str(exc_info.value)
        assert registry.get("nonexistent") is None

    def test_by_category_and_contains(self, make_agent):
        registry = AgentRegistry()
        registry.register(make_agent("bookkeeper", category="business"))
        registry.register(make_agent("designer", category="creative"))

        assert [r.name for r in registry.by_category("business")] == ["bookkeeper"]
        assert "designer" in registry
        assert "tax" not in registry

    def test_plain_agent_descriptor(self, make_plain_agent):
        registry = AgentRegistry()

        record = registry.register(make_plain_agent("plain"))

        assert record.descriptor == AgentDescriptor(name="plain", capabilities=frozenset({"plain"}))

    def test_concurrent_registration_keeps_names_unique(self, make_agent):
        registry = AgentRegistry()
        errors = []

        def register():
            try:
                registry.register(make_agent("shared"))
            except DuplicateAgentError as e:
                errors.append(e)

        threads = [threading.Thread(target=register) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(registry) == 1
        assert len(errors) == 7


class TestDescribeAgent:
    """Test cases for agent contract checking."""

    def test_rejects_missing_name(self):
        class Nameless:
            async def setup(self):
                pass

            async def process(self, task):
                pass

            async def cleanup(self):
                pass

        with pytest.raises(InvalidAgentError):
            describe_agent(Nameless())

    def test_rejects_missing_lifecycle_methods(self):
        class Partial:
            name = "partial"

            async def process(self, task):
                pass

        with pytest.raises(InvalidAgentError) as exc_info:
            describe_agent(Partial())

        assert "setup" in str(exc_info.value)
        assert "cleanup" in str(exc_info.value)

    def test_uses_existing_descriptor(self, stub_agent):
        assert describe_agent(stub_agent) is stub_agent.descriptor


class TestAgentRecord:
    """Test cases for lifecycle transitions on a record."""

    def test_happy_path_transitions(self, stub_agent):
        record = AgentRegistry().register(stub_agent)

        for state in [LifecycleState.INITIALIZING, LifecycleState.READY,
                      LifecycleState.SHUTTING_DOWN, LifecycleState.SHUTDOWN]:
            record.transition(state)

        assert record.state == LifecycleState.SHUTDOWN
        assert record.state.is_terminal

    def test_failed_is_terminal(self, stub_agent):
        record = AgentRegistry().register(stub_agent)
        record.transition(LifecycleState.INITIALIZING)
        record.transition(LifecycleState.FAILED)

        with pytest.raises(InvalidStateTransitionError):
            record.transition(LifecycleState.READY)

        assert record.state == LifecycleState.FAILED

    def test_cannot_skip_initializing(self, stub_agent):
        record = AgentRegistry().register(stub_agent)

        with pytest.raises(InvalidStateTransitionError):
            record.transition(LifecycleState.READY)

    def test_status_snapshot(self, stub_agent):
        record = AgentRegistry().register(stub_agent)
        status = record.to_status()

        assert status["name"] == "stub"
        assert status["state"] == "uninitialized"
        assert status["capabilities"] == ["testing"]
        assert status["last_error"] is None


class TestAgentMetrics:
    """Test cases for AgentMetrics."""

    def test_update_execution(self):
        metrics = AgentMetrics()
        metrics.update_execution(True, 100.0)
        metrics.update_execution(False, 300.0, "failed")

        assert metrics.total_executions == 2
        assert metrics.successful_executions == 1
        assert metrics.failed_executions == 1
        assert metrics.average_execution_time_ms == 200.0
        assert metrics.last_error == "failed"
        assert metrics.get_success_rate() == 50.0

    def test_success_rate_without_executions(self):
        assert AgentMetrics().get_success_rate() == 0.0
