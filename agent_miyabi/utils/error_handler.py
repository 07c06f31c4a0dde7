"""
Normalization of agent failures into uniform error details.
"""

import asyncio
import uuid
from typing import Any, Dict, Optional

from ..models.errors import (
    AgentExecutionError, AgentPhase, ErrorCategory, ErrorDetails, ErrorSeverity,
    MiyabiError
)
from .logging import get_logger


class ErrorHandler:
    """Classifies agent exceptions, keeps per-agent statistics and logs them."""

    def __init__(self):
        self.logger = get_logger(__name__)
        self.error_stats: Dict[str, Dict[str, int]] = {}

    def handle_agent_error(
        self,
        agent_name: str,
        phase: AgentPhase,
        error: BaseException,
        task_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> AgentExecutionError:
        """
        Wrap an exception raised by an agent.

        Args:
            agent_name: Agent that raised
            phase: Lifecycle operation that was running
            error: Raised exception
            task_id: Task being processed, if any
            context: Extra context recorded on the error details

        Returns:
            AgentExecutionError carrying normalized ErrorDetails
        """
        details = self.normalize(error, agent_name=agent_name, phase=phase,
                                 task_id=task_id, context=context)
        self._log_error(details)
        self._update_error_stats(agent_name, details.category.value)
        return AgentExecutionError(agent_name, phase, error, details)

    def normalize(
        self,
        error: BaseException,
        agent_name: Optional[str] = None,
        phase: Optional[AgentPhase] = None,
        task_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ) -> ErrorDetails:
        """Create standardized error details."""
        if isinstance(error, MiyabiError):
            category = error.category
            severity = error.severity
            message = error.message
        else:
            category = self._classify_error(error)
            severity = self._determine_severity(category)
            message = str(error) or type(error).__name__

        return ErrorDetails(
            error_id=str(uuid.uuid4()),
            error_type=type(error).__name__,
            message=message,
            category=category,
            severity=severity,
            phase=phase,
            agent_name=agent_name,
            task_id=task_id,
            context=dict(context or {}),
            recoverable=self._is_recoverable(category)
        )

    def _classify_error(self, error: BaseException) -> ErrorCategory:
        """Classify error into appropriate category."""
        if isinstance(error, (asyncio.TimeoutError, TimeoutError)):
            return ErrorCategory.TIMEOUT
        if isinstance(error, (ConnectionError, OSError)):
            return ErrorCategory.NETWORK
        if isinstance(error, (ValueError, TypeError, KeyError)):
            return ErrorCategory.VALIDATION

        error_type = type(error).__name__.lower()
        if any(keyword in error_type for keyword in ["network", "connection", "http"]):
            return ErrorCategory.NETWORK
        elif "timeout" in error_type:
            return ErrorCategory.TIMEOUT
        elif any(keyword in error_type for keyword in ["validation", "value", "type"]):
            return ErrorCategory.VALIDATION
        return ErrorCategory.PROCESSING

    def _determine_severity(self, category: ErrorCategory) -> ErrorSeverity:
        if category == ErrorCategory.VALIDATION:
            return ErrorSeverity.HIGH
        elif category in (ErrorCategory.NETWORK, ErrorCategory.TIMEOUT):
            return ErrorSeverity.MEDIUM
        return ErrorSeverity.LOW

    def _is_recoverable(self, category: ErrorCategory) -> bool:
        # Bad input fails the same way every time
        return category != ErrorCategory.VALIDATION

    def _log_error(self, error_details: ErrorDetails):
        """Log error with appropriate level."""
        log_kwargs = {
            "error_id": error_details.error_id,
            "error_type": error_details.error_type,
            "category": error_details.category.value,
            "severity": error_details.severity.value,
            "agent_name": error_details.agent_name,
            "phase": error_details.phase.value if error_details.phase else None,
            "task_id": error_details.task_id,
        }

        if error_details.severity == ErrorSeverity.CRITICAL:
            self.logger.critical(error_details.message, **log_kwargs)
        elif error_details.severity == ErrorSeverity.HIGH:
            self.logger.error(error_details.message, **log_kwargs)
        elif error_details.severity == ErrorSeverity.MEDIUM:
            self.logger.warning(error_details.message, **log_kwargs)
        else:
            self.logger.info(error_details.message, **log_kwargs)

    def _update_error_stats(self, agent_name: str, category: str):
        if agent_name not in self.error_stats:
            self.error_stats[agent_name] = {}

        if category not in self.error_stats[agent_name]:
            self.error_stats[agent_name][category] = 0

        self.error_stats[agent_name][category] += 1

    def get_error_stats(self) -> Dict[str, Dict[str, int]]:
        """Get current error statistics."""
        return {name: dict(stats) for name, stats in self.error_stats.items()}

    def reset_error_stats(self):
        """Reset error statistics."""
        self.error_stats.clear()
