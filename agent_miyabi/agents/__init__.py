"""
Agent contract, base class and bundled agents.
"""

from .base import Agent, BaseAgent
from .bookkeeper import BookkeeperAgent
from .configs import AGENT_CONFIGS, BOOKKEEPER

__all__ = [
    'Agent',
    'BaseAgent',
    'BookkeeperAgent',
    'AGENT_CONFIGS',
    'BOOKKEEPER'
]
