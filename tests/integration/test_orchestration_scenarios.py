"""
End-to-end orchestration scenarios and property-based tests.
"""

import asyncio
from typing import Any, List, Optional

import pytest
from hypothesis import given, settings, strategies as st

from agent_miyabi import AgentOrchestrator, BookkeeperAgent, LifecycleState
from agent_miyabi.agents import BOOKKEEPER
from agent_miyabi.models.core import AgentTask
from agent_miyabi.models.errors import (
    AgentExecutionError, AgentNotFoundError, AgentNotReadyError, DuplicateAgentError
)
from agent_miyabi.orchestration.events import EventType, RecordingEventSink
from agent_miyabi.utils.config import OrchestrationConfig

agent_names = st.text(
    alphabet="abcdefghijklmnopqrstuvwxyz0123456789-", min_size=1, max_size=12
)


class ScriptedAgent:
    """Agent whose setup and process outcomes are fixed up front."""

    def __init__(self, name: str, setup_fails: bool = False, process_fails: bool = False):
        self.name = name
        self.setup_fails = setup_fails
        self.process_fails = process_fails
        self.cleanup_calls = 0

    async def setup(self) -> None:
        await asyncio.sleep(0)
        if self.setup_fails:
            raise RuntimeError(f"{self.name} setup failed")

    async def process(self, task: AgentTask) -> Any:
        await asyncio.sleep(0)
        if self.process_fails:
            raise ValueError(f"{self.name} rejected {task.type}")
        return {"handled_by": self.name}

    async def cleanup(self) -> None:
        self.cleanup_calls += 1


def new_orchestrator(sink: Optional[RecordingEventSink] = None) -> AgentOrchestrator:
    return AgentOrchestrator(
        OrchestrationConfig(shutdown_drain_timeout_seconds=1.0),
        sinks=[sink or RecordingEventSink()]
    )


class TestEndToEndScenarios:
    """Full register, initialize, execute and shutdown runs."""

    @pytest.mark.asyncio
    async def test_failed_setup_agent_is_not_dispatchable(self, make_agent, good_task):
        orchestrator = new_orchestrator()
        orchestrator.register_agent(make_agent("A"))
        orchestrator.register_agent(make_agent("B", setup_error=RuntimeError("boom")))

        summary = await orchestrator.initialize_all()

        assert summary.to_dict() == {"succeeded": ["A"], "failed": {"B": "boom"}}

        response = await orchestrator.execute_task("A", good_task)
        assert response.success is True
        assert response.data == {"agent": "A", "input": {"value": 42}}

        with pytest.raises(AgentNotReadyError) as exc_info:
            await orchestrator.execute_task("B", good_task)
        assert not isinstance(exc_info.value, AgentExecutionError)

    @pytest.mark.asyncio
    async def test_process_failure_resolves_to_failed_response(self, make_agent):
        orchestrator = new_orchestrator()
        orchestrator.register_agent(make_agent("C"))
        await orchestrator.initialize_all()

        bad = await orchestrator.execute_task("C", {"type": "bad"})
        good = await orchestrator.execute_task("C", {"type": "good"})

        assert bad.success is False
        assert bad.error is not None
        assert good.success is True
        assert good.data is not None

    @pytest.mark.asyncio
    async def test_unknown_agent_regardless_of_registry(self, make_agent, good_task):
        orchestrator = new_orchestrator()

        with pytest.raises(AgentNotFoundError):
            await orchestrator.execute_task("unknown-agent", good_task)

        orchestrator.register_agent(make_agent("known"))
        await orchestrator.initialize_all()

        with pytest.raises(AgentNotFoundError):
            await orchestrator.execute_task("unknown-agent", good_task)

    @pytest.mark.asyncio
    async def test_bookkeeping_session(self):
        sink = RecordingEventSink()
        orchestrator = new_orchestrator(sink)
        bookkeeper = BookkeeperAgent(BOOKKEEPER)
        orchestrator.register_agents([
            bookkeeper,
            ScriptedAgent("AI Tax Accountant", setup_fails=True),
        ])

        summary = await orchestrator.initialize_all()
        assert summary.succeeded == ["AI Bookkeeper"]

        transactions = [
            {"date": "2024-04-01", "description": "Invoice", "amount": 500,
             "type": "debit", "account": "130"},
            {"date": "2024-04-01", "description": "Invoice", "amount": 500,
             "type": "credit", "account": "400"},
        ]
        orchestrator.register_workflow({
            "id": "month-end",
            "name": "Month-end close",
            "steps": [
                {"agent_name": "AI Bookkeeper",
                 "task": {"type": "trial-balance", "input": {"transactions": transactions}}},
            ],
        })

        results = await orchestrator.execute_workflow("month-end", {"period": "2024-04"})
        assert results["AI Bookkeeper"].data["balanced"] is True

        responses = await orchestrator.execute_parallel([
            ("AI Bookkeeper", {"type": "journal-entry", "input": {"transaction": t}})
            for t in transactions
        ])
        assert sorted(r.data["entry_id"] for r in responses) == ["JE-00001", "JE-00002"]

        shutdown = await orchestrator.shutdown_all()
        assert shutdown.succeeded == ["AI Bookkeeper"]
        assert orchestrator.get_record("AI Tax Accountant").state == LifecycleState.FAILED

        types = sink.types()
        assert types.count(EventType.AGENT_REGISTERED) == 2
        assert EventType.AGENT_FAILED in types
        assert types[-1] == EventType.AGENT_SHUTDOWN

    @pytest.mark.asyncio
    async def test_hanging_task_does_not_block_other_agents(self, make_agent):
        orchestrator = new_orchestrator()
        slow = make_agent("slow")
        orchestrator.register_agents([slow, make_agent("fast")])
        await orchestrator.initialize_all()

        hanging = asyncio.ensure_future(orchestrator.execute_task("slow", {"type": "wait"}))
        response = await asyncio.wait_for(
            orchestrator.execute_task("fast", {"type": "good"}), timeout=1.0
        )

        assert response.success
        assert not hanging.done()

        slow.release.set()
        assert (await hanging).success


class TestOrchestrationProperties:
    """Property-based checks over generated agent sets."""

    @given(names=st.lists(agent_names, min_size=1, max_size=10, unique=True))
    @settings(max_examples=50, deadline=None)
    def test_registry_holds_exactly_registered_agents(self, names):
        orchestrator = new_orchestrator()
        for name in names:
            orchestrator.register_agent(ScriptedAgent(name))

        duplicate = ScriptedAgent(names[0])
        with pytest.raises(DuplicateAgentError):
            orchestrator.register_agent(duplicate)

        assert orchestrator.registry.names() == names
        assert orchestrator.get_agent(names[0]) is not duplicate
        assert all(
            record.state == LifecycleState.UNINITIALIZED
            for record in orchestrator.registry.list_all()
        )

    @given(setup_failures=st.lists(st.booleans(), min_size=1, max_size=10))
    @settings(max_examples=50, deadline=None)
    def test_setup_outcomes_are_isolated(self, setup_failures):
        async def scenario():
            orchestrator = new_orchestrator()
            for index, fails in enumerate(setup_failures):
                orchestrator.register_agent(ScriptedAgent(f"agent-{index}", setup_fails=fails))
            return orchestrator, await orchestrator.initialize_all()

        orchestrator, summary = asyncio.run(scenario())

        for index, fails in enumerate(setup_failures):
            name = f"agent-{index}"
            record = orchestrator.get_record(name)
            if fails:
                assert record.state == LifecycleState.FAILED
                assert summary.failed[name] is not None
                assert name not in summary.succeeded
            else:
                assert record.state == LifecycleState.READY
                assert name in summary.succeeded
                assert name not in summary.failed

    @given(
        names=st.lists(agent_names, max_size=5, unique=True),
        target=agent_names
    )
    @settings(max_examples=50, deadline=None)
    def test_unknown_name_leaves_registry_unchanged(self, names, target):
        names = [name for name in names if name != target]

        async def scenario():
            orchestrator = new_orchestrator()
            for name in names:
                orchestrator.register_agent(ScriptedAgent(name))
            await orchestrator.initialize_all()
            before = [(r.name, r.state) for r in orchestrator.registry.list_all()]

            with pytest.raises(AgentNotFoundError):
                await orchestrator.execute_task(target, {"type": "anything"})

            return before, [(r.name, r.state) for r in orchestrator.registry.list_all()]

        before, after = asyncio.run(scenario())

        assert before == after

    @given(outcomes=st.lists(st.booleans(), min_size=1, max_size=8))
    @settings(max_examples=50, deadline=None)
    def test_success_flag_mirrors_process_outcome(self, outcomes):
        async def scenario() -> List[bool]:
            orchestrator = new_orchestrator()
            for index, fails in enumerate(outcomes):
                orchestrator.register_agent(ScriptedAgent(f"agent-{index}", process_fails=fails))
            await orchestrator.initialize_all()
            responses = await asyncio.gather(*(
                orchestrator.execute_task(f"agent-{index}", {"type": "work"})
                for index in range(len(outcomes))
            ))
            return [response.success for response in responses]

        successes = asyncio.run(scenario())

        assert successes == [not fails for fails in outcomes]

    @given(setup_failures=st.lists(st.booleans(), max_size=8))
    @settings(max_examples=50, deadline=None)
    def test_second_shutdown_is_empty(self, setup_failures):
        async def scenario():
            orchestrator = new_orchestrator()
            agents = [
                ScriptedAgent(f"agent-{index}", setup_fails=fails)
                for index, fails in enumerate(setup_failures)
            ]
            orchestrator.register_agents(agents)
            await orchestrator.initialize_all()
            first = await orchestrator.shutdown_all()
            second = await orchestrator.shutdown_all()
            return agents, first, second

        agents, first, second = asyncio.run(scenario())

        assert second.succeeded == []
        assert second.failed == {}
        assert len(first.succeeded) == setup_failures.count(False)
        assert all(agent.cleanup_calls == (0 if agent.setup_fails else 1) for agent in agents)
