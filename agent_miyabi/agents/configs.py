"""
Agent configuration catalog.

Configurations are handed to agent constructors explicitly; agents never look
them up on their own.
"""

from ..models.core import AgentConfig


BOOKKEEPER = AgentConfig(
    name="AI Bookkeeper",
    role="Bookkeeping specialist",
    category="business",
    description="Daily bookkeeping automation, journal entries and monthly trial balances",
    capabilities=[
        "journal-entry",
        "expense-reimbursement",
        "trial-balance",
    ],
)

AGENT_CONFIGS = {
    "BOOKKEEPER": BOOKKEEPER,
}
