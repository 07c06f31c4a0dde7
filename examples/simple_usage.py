"""
Simple usage example for Agent Miyabi.

Registers the bookkeeping agent plus one agent whose setup always fails, then
runs single tasks, a parallel batch and a workflow.
"""

import asyncio

from agent_miyabi import AgentConfig, AgentOrchestrator, BaseAgent, BookkeeperAgent
from agent_miyabi.agents import BOOKKEEPER
from agent_miyabi.models import AgentNotReadyError
from agent_miyabi.utils.config import get_config
from agent_miyabi.utils.logging import configure_logging


class TaxAccountantAgent(BaseAgent):
    """Agent whose external tax-table service is unreachable."""

    async def setup(self) -> None:
        raise ConnectionError("tax table service unavailable")


TRANSACTIONS = [
    {"date": "2024-04-01", "description": "Consulting invoice", "amount": 120000,
     "type": "debit", "account": "130", "category": "sales"},
    {"date": "2024-04-01", "description": "Consulting invoice", "amount": 120000,
     "type": "credit", "account": "400", "category": "sales"},
    {"date": "2024-04-03", "description": "Train tickets", "amount": 8600,
     "type": "debit", "account": "610", "category": "travel"},
    {"date": "2024-04-03", "description": "Train tickets", "amount": 8600,
     "type": "credit", "account": "100", "category": "travel"},
]


async def main():
    config = get_config()
    configure_logging(config.log_level, config.json_logging)

    orchestrator = AgentOrchestrator(config.orchestration)
    orchestrator.register_agents([
        BookkeeperAgent(BOOKKEEPER),
        TaxAccountantAgent(AgentConfig(name="AI Tax Accountant", category="business")),
    ])

    summary = await orchestrator.initialize_all()
    print("Initialization:", summary.to_dict())

    response = await orchestrator.execute_task("AI Bookkeeper", {
        "type": "trial-balance",
        "priority": "high",
        "input": {"period": "2024-04", "transactions": TRANSACTIONS},
    })
    if response.success:
        print("Trial balance balanced:", response.data["balanced"])

    response = await orchestrator.execute_task("AI Bookkeeper", {"type": "payroll", "input": {}})
    print("Unsupported task:", response.error.message)

    try:
        await orchestrator.execute_task("AI Tax Accountant", {"type": "tax-return"})
    except AgentNotReadyError as e:
        print("Skipped:", e)

    responses = await orchestrator.execute_parallel([
        ("AI Bookkeeper", {"type": "journal-entry", "input": {"transaction": t}})
        for t in TRANSACTIONS
    ])
    print("Journal entries:", [r.data["entry_id"] for r in responses if r.success])

    orchestrator.register_workflow({
        "id": "month-end",
        "name": "Month-end close",
        "steps": [
            {"agent_name": "AI Bookkeeper",
             "task": {"type": "trial-balance", "input": {"transactions": TRANSACTIONS}}},
        ],
    })
    results = await orchestrator.execute_workflow("month-end", {"period": "2024-04"})
    print("Workflow steps:", {name: r.success for name, r in results.items()})

    print("Shutdown:", (await orchestrator.shutdown_all()).to_dict())


if __name__ == "__main__":
    asyncio.run(main())
